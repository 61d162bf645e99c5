# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.  # noqa: E501
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.

import logging
import math

import numpy as np
from numba import njit, prange

from . import config
from .errors import InvalidStatistics, InvalidWindow

logger = logging.getLogger(__name__)


def _preprocess(T):
    """
    Create a `float64` copy of the input sequence and ensure that it is 1-D

    Parameters
    ----------
    T : numpy.ndarray
        Time series or sequence. Lists and pandas `Series` are also accepted.

    Returns
    -------
    T : numpy.ndarray
        A new 1-D `float64` array
    """
    T = np.array(T, dtype=np.float64, copy=True)
    if T.ndim != 1:
        raise ValueError(f"T has to be one dimensional but found {T.ndim} dimensions")

    return T


def rolling_window(a, window):
    """
    Use strides to generate rolling/sliding windows for a numpy array.

    Parameters
    ----------
    a : numpy.ndarray
        numpy array

    window : int
        Size of the rolling window

    Returns
    -------
    output : numpy.ndarray
        This will be a new view of the original input array.
    """
    a = np.asarray(a)
    shape = a.shape[:-1] + (a.shape[-1] - window + 1, window)
    strides = a.strides + (a.strides[-1],)

    return np.lib.stride_tricks.as_strided(a, shape=shape, strides=strides)


def check_window_size(m, n):
    """
    Check that the window size is an integer between one and the length of the
    sequence (inclusive)

    Parameters
    ----------
    m : int
        Window size

    n : int
        The length of the sequence

    Returns
    -------
    None

    Raises
    ------
    InvalidWindow
        If `m` is not an integer, if the sequence is empty, or if `m` is outside
        of the range `[1, n]`
    """
    if isinstance(m, (bool, np.bool_)) or not isinstance(m, (int, np.integer)):
        raise InvalidWindow(f"The window size must be an integer but found {m!r}")

    if n == 0:
        raise InvalidWindow("Rolling statistics cannot be computed for an empty T")

    if m < 1:
        raise InvalidWindow(
            f"The window size must be greater than or equal to one but found m = {m}"
        )

    if m > n:
        raise InvalidWindow(
            f"The window size, 'm = {m}', must be less than or equal to the length "
            + f"of T, {n}"
        )


def rolling_isfinite(a, w):
    """
    Determine if all elements in each rolling window are finite

    Parameters
    ----------
    a : numpy.ndarray
        The input array

    w : int
        The rolling window size

    Returns
    -------
    output : numpy.ndarray
        A boolean array with a last dimension of length `a.shape[-1] - w + 1`
    """
    return np.all(rolling_window(np.isfinite(a), w), axis=-1)


@njit(parallel=True, fastmath=config.MPCORE_FASTMATH_FLAGS)
def _rolling_isconstant(a, w):
    """
    Compute the rolling isconstant for 1-D array.

    A window is constant when its peak-to-peak value is exactly zero. A window
    that contains at least one NaN is never constant.

    Parameters
    ----------
    a : numpy.ndarray
        The input array

    w : int
        The rolling window size

    Returns
    -------
    output : numpy.ndarray
        Rolling window isconstant.
    """
    l = a.shape[0] - w + 1
    out = np.empty(l)
    for i in prange(l):
        out[i] = np.ptp(a[i : i + w])

    return out == 0


def rolling_isconstant(a, w):
    """
    Compute the rolling isconstant for 1-D and 2-D arrays.

    Parameters
    ----------
    a : numpy.ndarray
        The input array

    w : int
        The rolling window size

    Returns
    -------
    output : numpy.ndarray
        A boolean array that is `True` for every finite window whose min and max
        are equal and `False` otherwise
    """
    axis = a.ndim - 1  # Account for rolling
    a_subseq_isconstant = np.apply_along_axis(
        lambda a_row, w: _rolling_isconstant(a_row, w), axis=axis, arr=a, w=w
    )

    return np.logical_and(a_subseq_isconstant, rolling_isfinite(a, w))


@njit(fastmath=config.MPCORE_FASTMATH_FLAGS)
def _welford_nanvar(a, w, a_subseq_isfinite):
    """
    Compute the rolling variance for a 1-D array while ignoring NaNs using a modified
    version of Welford's algorithm

    The mean and variance of the first window (and of any window that follows,
    or is, a non-finite window) are computed from scratch and every other window
    is obtained from its predecessor in constant time.

    Parameters
    ----------
    a : numpy.ndarray
        The input array

    w : int
        The rolling window size

    a_subseq_isfinite : numpy.ndarray
        A boolean array that describes whether each subequence of length `w` within `a`
        is finite.

    Returns
    -------
    all_variances : numpy.ndarray
        Rolling window nanvar
    """
    all_variances = np.empty(a.shape[0] - w + 1, dtype=np.float64)
    prev_mean = 0.0
    prev_var = 0.0

    for start_idx in range(a.shape[0] - w + 1):
        prev_start_idx = start_idx - 1
        stop_idx = start_idx + w  # Exclusive index value
        last_idx = start_idx + w - 1  # Last inclusive index value

        if (
            start_idx == 0
            or not a_subseq_isfinite[prev_start_idx]
            or not a_subseq_isfinite[start_idx]
        ):
            curr_mean = np.nanmean(a[start_idx:stop_idx])
            curr_var = np.nanvar(a[start_idx:stop_idx])
        else:
            curr_mean = prev_mean + (a[last_idx] - a[prev_start_idx]) / w
            curr_var = (
                prev_var
                + (a[last_idx] - a[prev_start_idx])
                * (a[last_idx] - curr_mean + a[prev_start_idx] - prev_mean)
                / w
            )

        all_variances[start_idx] = curr_var

        prev_mean = curr_mean
        prev_var = curr_var

    return all_variances


def welford_nanvar(a, w=None):
    """
    Compute the rolling variance for a 1-D array while ignoring NaNs.

    This is a convenience wrapper around the `_welford_nanvar` function.

    Parameters
    ----------
    a : numpy.ndarray
        The input array

    w : int, default None
        The rolling window size. When None, this defaults to `a.shape[0]`.

    Returns
    -------
    output : numpy.ndarray
        Rolling window nanvar.
    """
    if w is None:
        w = a.shape[0]

    a_subseq_isfinite = rolling_isfinite(a, w)

    return _welford_nanvar(a, w, a_subseq_isfinite)


def welford_nanstd(a, w=None):
    """
    Compute the rolling standard deviation for a 1-D array while ignoring NaNs.

    Any negative variance that results from floating-point cancellation is
    clipped to zero before taking the square root.

    Parameters
    ----------
    a : numpy.ndarray
        The input array

    w : int, default None
        The rolling window size. When None, this defaults to `a.shape[0]`.

    Returns
    -------
    output : numpy.ndarray
        Rolling window nanstd.
    """
    if w is None:
        w = a.shape[0]

    return np.sqrt(np.clip(welford_nanvar(a, w), a_min=0, a_max=None))


@njit(parallel=True, fastmath=config.MPCORE_FASTMATH_FLAGS)
def _rolling_nanstd_1d(a, w):
    """
    A Numba JIT-compiled and parallelized function for computing the rolling standard
    deviation for 1-D array while ignoring NaN.

    Parameters
    ----------
    a : numpy.ndarray
        The input array

    w : int
        The rolling window size

    Returns
    -------
    out : numpy.ndarray
        This 1D array has the length of `a.shape[0]-w+1`. `out[i]`
        contains the stddev value of `a[i : i + w]`
    """
    n = a.shape[0] - w + 1
    out = np.empty(n, dtype=np.float64)
    for i in prange(n):
        out[i] = np.nanstd(a[i : i + w])

    return out


def rolling_nanstd(a, w, welford=False):
    """
    Compute the rolling standard deviation over the last axis of `a` while ignoring
    NaNs.

    This essentially replaces:
        `np.nanstd(rolling_window(a[..., start:stop], w), axis=a.ndim)`

    Parameters
    ----------
    a : numpy.ndarray
        The input array

    w : int
        The rolling window size

    welford : bool, default False
        When False (default), the computation is parallelized and the stddev of
        each subsequence is calculated on its own. When `welford==True`, the
        welford method is used to reduce the computing time at the cost of slightly
        reduced precision.

    Returns
    -------
    out : numpy.ndarray
        Rolling window nanstd
    """
    axis = a.ndim - 1  # Account for rolling
    if welford:
        return np.apply_along_axis(
            lambda a_row, w: welford_nanstd(a_row, w), axis=axis, arr=a, w=w
        )
    else:
        return np.apply_along_axis(
            lambda a_row, w: _rolling_nanstd_1d(a_row, w), axis=axis, arr=a, w=w
        )


def _compute_mean_std(T, m, welford=False):
    """
    Compute the sliding mean and standard deviation of a finite 1-D array, chunk
    by chunk

    Parameters
    ----------
    T : numpy.ndarray
        Time series or sequence that contains only finite values

    m : int
        Window size

    welford : bool, default False
        Use the Welford update to compute the rolling standard deviation

    Returns
    -------
    M_T : numpy.ndarray
        Sliding mean

    Σ_T : numpy.ndarray
        Sliding standard deviation

    Notes
    -----
    The number of chunks starts at `config.MPCORE_MEAN_STD_NUM_CHUNKS` and is
    doubled every time a `MemoryError` is encountered, for at most
    `config.MPCORE_MEAN_STD_MAX_ITER` attempts.
    """
    num_chunks = config.MPCORE_MEAN_STD_NUM_CHUNKS
    max_iter = config.MPCORE_MEAN_STD_MAX_ITER

    for _ in range(max_iter):
        try:
            chunk_size = math.ceil((T.shape[0] + 1) / num_chunks)
            if chunk_size < m:
                chunk_size = m

            mean_chunks = []
            std_chunks = []
            for chunk in range(num_chunks):
                start = chunk * chunk_size
                stop = min(start + chunk_size + m - 1, T.shape[0])
                if stop - start < m:
                    break

                mean_chunks.append(np.mean(rolling_window(T[start:stop], m), axis=1))
                std_chunks.append(rolling_nanstd(T[start:stop], m, welford=welford))

            return np.hstack(mean_chunks), np.hstack(std_chunks)

        except MemoryError:
            logger.warning(
                f"Ran out of memory with {num_chunks} chunk(s). "
                + f"Retrying with {2 * num_chunks} chunks."
            )
            num_chunks *= 2

    raise MemoryError(
        "Could not calculate mean and standard deviation. "
        "Increase the number of chunks or maximal iterations."
    )


def z_norm(a):
    """
    Z-normalize a sequence by subtracting its mean and dividing by its
    (population) standard deviation

    Parameters
    ----------
    a : numpy.ndarray
        Time series or sequence

    Returns
    -------
    output : numpy.ndarray
        The z-normalized sequence, which has zero mean and unit variance

    Raises
    ------
    InvalidStatistics
        If `a` is empty, contains a non-finite value, or is constant

    Examples
    --------
    >>> import mpcore
    >>> mpcore.z_norm([7., 5., 5., 7.])
    array([ 1., -1., -1.,  1.])
    """
    a = _preprocess(a)

    if a.shape[0] == 0:
        raise InvalidStatistics("An empty sequence cannot be z-normalized")

    if not np.all(np.isfinite(a)):
        raise InvalidStatistics("The sequence contains one or more NaN/inf values")

    if np.ptp(a) == 0:
        raise InvalidStatistics(
            "The sequence is constant and has a standard deviation of zero"
        )

    # Rescale so that squaring the deviations cannot overflow
    a = a / np.max(np.abs(a))
    σ = np.std(a)
    if σ == 0:
        raise InvalidStatistics(
            "The sequence is constant and has a standard deviation of zero"
        )

    return (a - np.mean(a)) / σ


def movmeanstd(T, m, welford=False):
    """
    Compute the moving mean and moving (population) standard deviation of `T`
    with a window size of `m`

    Parameters
    ----------
    T : numpy.ndarray
        Time series or sequence

    m : int
        Window size

    welford : bool, default False
        When False (default), the variance of every window is computed on its own.
        When True, the variance is updated incrementally with Welford's method,
        which is faster at the cost of slightly reduced precision.

    Returns
    -------
    M_T : numpy.ndarray
        Moving mean with length `len(T) - m + 1`

    Σ_T : numpy.ndarray
        Moving standard deviation with length `len(T) - m + 1`

    Raises
    ------
    InvalidWindow
        If `T` is empty or if `m` is not an integer in `[1, len(T)]`

    Notes
    -----
    Every constant window reports its value as the mean and exactly `0.0` as its
    standard deviation. Every window that contains at least one NaN/inf value
    reports `np.nan` for both.

    `DOI: 10.1109/ICDM.2016.0179 \
    <https://www.cs.ucr.edu/~eamonn/PID4481997_extend_Matrix%20Profile_I.pdf>`__

    See Table II

    Examples
    --------
    >>> import mpcore
    >>> mpcore.movmeanstd([1., 2., 4., 8.], 2)
    (array([1.5, 3. , 6. ]), array([0.5, 1. , 2. ]))
    """
    T = _preprocess(T)
    check_window_size(m, T.shape[0])

    T_subseq_isfinite = rolling_isfinite(T, m)
    T_subseq_isconstant = rolling_isconstant(T, m)
    T[~np.isfinite(T)] = 0.0

    M_T, Σ_T = _compute_mean_std(T, m, welford=welford)

    M_T[T_subseq_isconstant] = T[: M_T.shape[0]][T_subseq_isconstant]
    Σ_T[T_subseq_isconstant] = 0.0
    M_T[~T_subseq_isfinite] = np.nan
    Σ_T[~T_subseq_isfinite] = np.nan

    return M_T, Σ_T


def muinvn(T, w):
    """
    Compute the moving mean and the inverse norm of every mean-centered window of
    `T` with a window size of `w`

    These are the per-window quantities needed to update the z-normalized
    Euclidean distance in constant time while traversing a diagonal of the
    distance matrix. For a window `S` with mean `μ`, the inverse norm is
    `1 / ||S - μ||`.

    Parameters
    ----------
    T : numpy.ndarray
        Time series or sequence

    w : int
        Window size

    Returns
    -------
    μ : numpy.ndarray
        Moving mean with length `len(T) - w + 1`

    σ_inverse : numpy.ndarray
        Inverse norm of each mean-centered window with length `len(T) - w + 1`.
        Constant windows have an inverse norm of `0.0`.

    Raises
    ------
    InvalidWindow
        If `T` is empty or if `w` is not an integer in `[1, len(T)]`

    Examples
    --------
    >>> import mpcore
    >>> μ, σ_inverse = mpcore.muinvn([2., 4., 3., 5., 4., 6.], 3)
    >>> μ
    array([3., 4., 4., 5.])
    """
    μ, σ = movmeanstd(T, w)

    σ_inverse = np.zeros(σ.shape[0], dtype=np.float64)
    σ_inverse[np.isnan(σ)] = np.nan
    mask = σ > 0
    σ_inverse[mask] = 1.0 / (σ[mask] * np.sqrt(w))

    return μ, σ_inverse
