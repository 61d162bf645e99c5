# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.

import collections
import logging

import numpy as np

from .errors import InvalidPartition
from .order import binary_split

logger = logging.getLogger(__name__)

Batch = collections.namedtuple("Batch", ["start", "size"])
Batch.__doc__ = "A contiguous range of diagonal indices, `[start, start + size)`"


def _check_partition(l, p):
    """
    Check that both the number of diagonals and the number of batches are
    positive integers

    Parameters
    ----------
    l : int
        The number of diagonals

    p : int
        The number of batches

    Returns
    -------
    None

    Raises
    ------
    InvalidPartition
        If `l` or `p` is not a positive integer
    """
    for name, val in (("l", l), ("p", p)):
        if isinstance(val, (bool, np.bool_)) or not isinstance(val, (int, np.integer)):
            raise InvalidPartition(f"`{name}` must be an integer but found {val!r}")
        if val <= 0:
            raise InvalidPartition(f"`{name}` must be positive but found {val}")


def diag_batching_scheme(l, p):
    """
    Split the diagonal indices `[0, l)` into `p` contiguous batches that each
    require (approximately) the same number of distance computations

    The diagonal with index `k` has a cost of `l - k` so the total cost,
    `l * (l + 1) / 2`, is the area of a triangle. Rather than splitting the indices
    into equally sized batches, the start of batch `i` is placed such that the
    triangular area that remains after it is `(p - i) / p` of the total, which
    leads to small batches of expensive diagonals at the start of the range and
    larger batches of cheap diagonals toward its end.

    Parameters
    ----------
    l : int
        The number of diagonals

    p : int
        The number of batches (e.g., one for each worker)

    Returns
    -------
    batches : list
        A list of `p` `Batch(start, size)` namedtuples that are sorted by `start`
        and jointly cover `[0, l)` without any gaps or overlaps

    Raises
    ------
    InvalidPartition
        If `l` or `p` is not a positive integer

    Notes
    -----
    The start of batch `i > 0` is `l - ceil(sqrt(l * (l + 1) * (p - i) / p))`. The
    starts are then forced to be strictly increasing (so that every batch receives
    at least one diagonal) and the final batch absorbs the remainder of the range.
    When `l < p`, the first `l` batches each contain a single diagonal and the
    remaining batches are empty with `start = l` and `size = 0`.

    Examples
    --------
    >>> import mpcore
    >>> batches = mpcore.diag_batching_scheme(33, 4)
    >>> [batch.start for batch in batches]
    [0, 3, 9, 16]
    >>> [batch.size for batch in batches]
    [3, 6, 7, 17]
    """
    _check_partition(l, p)
    l = int(l)
    p = int(p)

    batch_idx = np.arange(p, dtype=np.int64)
    if l < p:
        logger.warning(
            f"There are fewer diagonals ({l}) than batches ({p}). "
            + f"The last {p - l} batch(es) will be empty."
        )
        starts = np.minimum(batch_idx, l)
    else:
        # Float arithmetic since `l * (l + 1) * p` can exceed the range of int64
        area = float(l * (l + 1))
        remaining = np.ceil(np.sqrt(area * (p - batch_idx[1:]) / p))
        starts = np.empty(p, dtype=np.int64)
        starts[0] = 0
        starts[1:] = l - remaining.astype(np.int64)

        # Every batch must receive at least one diagonal
        starts = np.maximum.accumulate(starts - batch_idx) + batch_idx
        starts = np.minimum(starts, l - p + batch_idx)

    sizes = np.diff(np.append(starts, l))

    return [Batch(int(start), int(size)) for start, size in zip(starts, sizes)]


def batch_costs(batches, l):
    """
    Count the number of distances that are computed for each batch of diagonals

    Parameters
    ----------
    batches : list
        A list of `Batch(start, size)` namedtuples

    l : int
        The number of diagonals

    Returns
    -------
    costs : numpy.ndarray
        The total cost, `sum(l - k)`, of the diagonals `k` in each batch
    """
    _check_partition(l, 1)
    l = int(l)

    costs = np.zeros(len(batches), dtype=np.int64)
    for i, (start, size) in enumerate(batches):
        start = int(start)
        size = int(size)
        stop = start + size
        # Sum of the arithmetic series (l - start) + ... + (l - stop + 1)
        costs[i] = size * (2 * l - start - stop + 1) // 2

    return costs


def batch_indices(batch, anytime=True):
    """
    Return the diagonal indices that belong to a single batch

    Parameters
    ----------
    batch : Batch
        A `Batch(start, size)` namedtuple

    anytime : bool, default True
        When True, the indices are ordered by `binary_split` so that a worker that
        is interrupted early has already covered its entire batch coarsely.
        Otherwise, the indices are returned in ascending order.

    Returns
    -------
    indices : numpy.ndarray
        The diagonal indices in `[batch.start, batch.start + batch.size)`
    """
    start, size = batch
    if anytime:
        return binary_split(start, start + size - 1)

    return np.arange(start, start + size, dtype=np.int64)
