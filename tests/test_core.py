from unittest.mock import patch

import naive
import numpy as np
import numpy.testing as npt
import pandas as pd
import pytest

from mpcore import InvalidStatistics, InvalidWindow, config, core

test_data = [
    (np.array([584, -11, 23, 79, 1001, 0, -19], dtype=np.float64), 3),
    (np.array([9, 8100, -60, 7, 1, 2, 3, 4], dtype=np.float64), 4),
    (np.random.uniform(-1000, 1000, [64]), 8),
    (np.random.uniform(-1000, 1000, [64]), 64),
    (np.random.uniform(-1000, 1000, [64]), 1),
]

movmeanstd_hardcoded_data = [
    ([1, 1, 1, 1], 4, [1], [0]),
    ([1, 1, 1, 1], 2, [1, 1, 1], [0, 0, 0]),
    ([-1, -1, -1, -1], 2, [-1, -1, -1], [0, 0, 0]),
    ([1, -1, -1, 1], 2, [0, -1, 0], [1, 0, 1]),
    ([1, 2, 4, 8], 2, [1.5, 3, 6], [0.5, 1, 2]),
]

muinvn_hardcoded_data = [
    ([2, 2, 2, 2, 2, 2], 3, [2, 2, 2, 2], [0, 0, 0, 0]),
    ([2, 4, 3, 5, 4, 6], 3, [3, 4, 4, 5], [np.sqrt(2) / 2] * 4),
    ([1, 1, 1, 1], 4, [1], [0]),
    ([1, 1, 1, 1], 2, [1, 1, 1], [0, 0, 0]),
    ([-1, -1, -1, -1], 2, [-1, -1, -1], [0, 0, 0]),
]

invalid_window_data = [
    ([], 4),
    ([], 0),
    ([1, 1, 1, 1], 0),
    ([1, 1, 1, 1], -1),
    ([1, 1, 1, 1], 5),
    ([1, 2, 3, 4], 2.0),
    ([1, 2, 3, 4], True),
    ([1, 2, 3, 4], None),
]


def test_rolling_window():
    T = np.random.rand(20)
    for m in range(1, 6):
        ref = naive.rolling_window(T, m)
        comp = core.rolling_window(T, m)
        npt.assert_almost_equal(ref, comp)


def test_check_window_size():
    for m in range(1, 5):
        core.check_window_size(m, 4)
    core.check_window_size(np.int64(3), 4)


@pytest.mark.parametrize("T, m", invalid_window_data)
def test_check_window_size_invalid(T, m):
    with pytest.raises(InvalidWindow):
        core.check_window_size(m, len(T))


def test_invalid_window_is_value_error():
    with pytest.raises(ValueError):
        core.check_window_size(0, 10)


def test_z_norm():
    T = np.random.uniform(-1000, 1000, [64])
    ref = naive.z_norm(T)
    comp = core.z_norm(T)
    npt.assert_almost_equal(ref, comp)

    npt.assert_almost_equal(np.mean(comp), 0.0)
    npt.assert_almost_equal(np.var(comp), 1.0)


@pytest.mark.parametrize(
    "T, ref",
    [
        ([-1, 1, -1, 1], [-1, 1, -1, 1]),
        ([7, 5, 5, 7], [1, -1, -1, 1]),
        ([1e200, -1e200, 1e200, -1e200], [1, -1, 1, -1]),
        ([1e-200, 3e-200, 1e-200, 3e-200], [-1, 1, -1, 1]),
    ],
)
def test_z_norm_hardcoded(T, ref):
    comp = core.z_norm(T)
    npt.assert_almost_equal(ref, comp)


@pytest.mark.parametrize(
    "T",
    [[], [1, 1, 1, 1], [0.1, 0.1, 0.1], [5.0], [1, np.nan, 2], [1, np.inf, 2]],
)
def test_z_norm_invalid(T):
    with pytest.raises(InvalidStatistics):
        core.z_norm(T)


def test_z_norm_does_not_modify_input():
    T = np.array([7, 5, 5, 7], dtype=np.float64)
    core.z_norm(T)
    npt.assert_equal(T, np.array([7, 5, 5, 7], dtype=np.float64))


def test_z_norm_pandas_series():
    T = np.random.rand(32)
    ref = naive.z_norm(T)
    comp = core.z_norm(pd.Series(T))
    npt.assert_almost_equal(ref, comp)


def test_z_norm_2d():
    with pytest.raises(ValueError):
        core.z_norm(np.random.rand(3, 10))


def test_welford_nanvar():
    T = np.random.rand(64)
    m = 10

    ref_var = np.nanvar(T)
    comp_var = core.welford_nanvar(T)
    npt.assert_almost_equal(ref_var, comp_var)

    ref_var = np.nanvar(core.rolling_window(T, m), axis=1)
    comp_var = core.welford_nanvar(T, m)
    npt.assert_almost_equal(ref_var, comp_var)


def test_welford_nanvar_catastrophic_cancellation():
    T = np.array([4.0, 7.0, 13.0, 16.0, 10.0]) + 10**8
    m = 4

    ref_var = np.nanvar(core.rolling_window(T, m), axis=1)
    comp_var = core.welford_nanvar(T, m)
    npt.assert_almost_equal(ref_var, comp_var)


def test_welford_nanvar_nan():
    T = np.random.rand(64)
    m = 10

    T[1] = np.nan
    T[10] = np.nan
    T[13:18] = np.nan

    ref_var = np.nanvar(core.rolling_window(T, m), axis=1)
    comp_var = core.welford_nanvar(T, m)
    npt.assert_almost_equal(ref_var, comp_var)


def test_welford_nanstd():
    T = np.random.rand(64)
    m = 10

    ref_std = np.nanstd(core.rolling_window(T, m), axis=1)
    comp_std = core.welford_nanstd(T, m)
    npt.assert_almost_equal(ref_std, comp_std)


def test_rolling_nanstd_1d():
    a = np.random.rand(64)
    for w in range(1, 6):
        ref_std = np.nanstd(core.rolling_window(a, w), axis=1)

        # welford = False (default)
        comp_std = core.rolling_nanstd(a, w)
        npt.assert_almost_equal(ref_std, comp_std)

        # welford = True
        comp_std = core.rolling_nanstd(a, w, welford=True)
        npt.assert_almost_equal(ref_std, comp_std)


def test_rolling_nanstd_2d():
    w = 5
    for n_rows in range(1, 4):
        a = np.random.rand(n_rows * 64).reshape(n_rows, 64)
        ref_std = np.nanstd(core.rolling_window(a, w), axis=a.ndim)

        comp_std = core.rolling_nanstd(a, w)
        npt.assert_almost_equal(ref_std, comp_std)

        comp_std = core.rolling_nanstd(a, w, welford=True)
        npt.assert_almost_equal(ref_std, comp_std)


def test_rolling_isfinite():
    a = np.arange(12).astype(np.float64)
    a[3] = np.nan
    a[9] = np.inf
    w = 3

    ref = np.array(
        [np.all(np.isfinite(a[i : i + w])) for i in range(len(a) - w + 1)]
    )
    comp = core.rolling_isfinite(a, w)
    npt.assert_equal(ref, comp)


def test_rolling_isconstant():
    a = np.array([1.0, 1.0, 1.0, 2.0, 2.0, np.nan, np.nan, 3.0, 3.0, 3.0])
    w = 2

    ref = np.array([True, True, False, True, False, False, False, True, True])
    comp = core.rolling_isconstant(a, w)
    npt.assert_equal(ref, comp)


@pytest.mark.parametrize("T, m", test_data)
def test_movmeanstd(T, m):
    ref_M_T, ref_Σ_T = naive.movmeanstd(T, m)

    comp_M_T, comp_Σ_T = core.movmeanstd(T, m)
    npt.assert_almost_equal(ref_M_T, comp_M_T)
    npt.assert_almost_equal(ref_Σ_T, comp_Σ_T)

    comp_M_T, comp_Σ_T = core.movmeanstd(T, m, welford=True)
    npt.assert_almost_equal(ref_M_T, comp_M_T)
    npt.assert_almost_equal(ref_Σ_T, comp_Σ_T)


@pytest.mark.parametrize("T, m, ref_M_T, ref_Σ_T", movmeanstd_hardcoded_data)
def test_movmeanstd_hardcoded(T, m, ref_M_T, ref_Σ_T):
    for welford in [False, True]:
        comp_M_T, comp_Σ_T = core.movmeanstd(T, m, welford=welford)
        npt.assert_almost_equal(ref_M_T, comp_M_T)
        npt.assert_almost_equal(ref_Σ_T, comp_Σ_T)


@pytest.mark.parametrize("T, m", invalid_window_data)
def test_movmeanstd_invalid(T, m):
    with pytest.raises(InvalidWindow):
        core.movmeanstd(T, m)


def test_movmeanstd_length():
    T = np.random.rand(50)
    for m in range(1, 51):
        M_T, Σ_T = core.movmeanstd(T, m)
        assert M_T.shape[0] == 50 - m + 1
        assert Σ_T.shape[0] == 50 - m + 1


def test_movmeanstd_constant():
    for val in [0.1, -3.3, 1e8 + 0.7]:
        T = np.full(16, val)
        for m in range(1, 17):
            for welford in [False, True]:
                M_T, Σ_T = core.movmeanstd(T, m, welford=welford)
                npt.assert_equal(M_T, np.full(16 - m + 1, val))
                npt.assert_equal(Σ_T, np.zeros(16 - m + 1))


def test_movmeanstd_constant_windows_after_noise():
    T = np.concatenate([np.random.uniform(-1000, 1000, [32]), np.full(10, 0.3)])
    m = 5

    M_T, Σ_T = core.movmeanstd(T, m, welford=True)
    npt.assert_equal(M_T[-6:], np.full(6, 0.3))
    npt.assert_equal(Σ_T[-6:], np.zeros(6))
    assert np.all(Σ_T >= 0)


def test_movmeanstd_catastrophic_cancellation():
    T = np.array([4.0, 7.0, 13.0, 16.0, 10.0, 1.0, 12.0]) + 10**8
    m = 4

    ref_Σ_T = np.std(core.rolling_window(T, m), axis=1)
    for welford in [False, True]:
        _, comp_Σ_T = core.movmeanstd(T, m, welford=welford)
        npt.assert_almost_equal(ref_Σ_T, comp_Σ_T)


def test_movmeanstd_nan_inf():
    T = np.random.rand(20)
    T[5] = np.nan
    T[14] = np.inf
    m = 3

    T_subseq_isfinite = core.rolling_isfinite(T, m)
    M_T, Σ_T = core.movmeanstd(T, m)

    assert np.all(np.isnan(M_T[~T_subseq_isfinite]))
    assert np.all(np.isnan(Σ_T[~T_subseq_isfinite]))

    ref_M_T = np.mean(core.rolling_window(T, m), axis=1)
    ref_Σ_T = np.std(core.rolling_window(T, m), axis=1)
    npt.assert_almost_equal(ref_M_T[T_subseq_isfinite], M_T[T_subseq_isfinite])
    npt.assert_almost_equal(ref_Σ_T[T_subseq_isfinite], Σ_T[T_subseq_isfinite])


def test_movmeanstd_does_not_modify_input():
    T = np.random.rand(20)
    T[5] = np.nan
    ref = T.copy()
    core.movmeanstd(T, 3)
    npt.assert_equal(ref, T)


@pytest.mark.parametrize("T, m", test_data)
def test_movmeanstd_chunked(T, m):
    ref_M_T, ref_Σ_T = naive.movmeanstd(T, m)

    for num_chunks in [2, 3, 5]:
        config.MPCORE_MEAN_STD_NUM_CHUNKS = num_chunks
        comp_M_T, comp_Σ_T = core.movmeanstd(T, m)
        npt.assert_almost_equal(ref_M_T, comp_M_T)
        npt.assert_almost_equal(ref_Σ_T, comp_Σ_T)

    config._reset("MPCORE_MEAN_STD_NUM_CHUNKS")


def test_movmeanstd_memory_error_retry():
    T = np.random.rand(64)
    m = 8
    ref_M_T, ref_Σ_T = naive.movmeanstd(T, m)

    rolling_nanstd = core.rolling_nanstd
    calls = []

    def flaky_rolling_nanstd(a, w, welford=False):
        calls.append(a.shape[0])
        if len(calls) == 1:
            raise MemoryError
        return rolling_nanstd(a, w, welford=welford)

    with patch("mpcore.core.rolling_nanstd", side_effect=flaky_rolling_nanstd):
        comp_M_T, comp_Σ_T = core.movmeanstd(T, m)

    assert len(calls) > 2  # The retry splits `T` into two chunks
    npt.assert_almost_equal(ref_M_T, comp_M_T)
    npt.assert_almost_equal(ref_Σ_T, comp_Σ_T)


def test_movmeanstd_memory_error_exhausted():
    T = np.random.rand(64)
    with patch("mpcore.core.rolling_nanstd", side_effect=MemoryError):
        with pytest.raises(MemoryError):
            core.movmeanstd(T, 8)


@pytest.mark.parametrize("T, m", test_data)
def test_muinvn(T, m):
    ref_μ, ref_σ_inverse = naive.muinvn(T, m)
    comp_μ, comp_σ_inverse = core.muinvn(T, m)

    npt.assert_almost_equal(ref_μ, comp_μ)
    npt.assert_almost_equal(ref_σ_inverse, comp_σ_inverse)


@pytest.mark.parametrize("T, w, ref_μ, ref_σ_inverse", muinvn_hardcoded_data)
def test_muinvn_hardcoded(T, w, ref_μ, ref_σ_inverse):
    comp_μ, comp_σ_inverse = core.muinvn(T, w)

    npt.assert_equal(np.array(ref_μ, dtype=np.float64), comp_μ)
    npt.assert_almost_equal(ref_σ_inverse, comp_σ_inverse, decimal=9)


def test_muinvn_scale_invariant():
    T = np.random.uniform(-1000, 1000, [64])
    m = 8

    _, σ_inverse = core.muinvn(T, m)
    _, scaled_σ_inverse = core.muinvn(10.0 * T + 3.0, m)
    npt.assert_almost_equal(σ_inverse, 10.0 * scaled_σ_inverse)


def test_muinvn_single_window():
    T = np.random.rand(10)
    μ, σ_inverse = core.muinvn(T, 10)

    assert μ.shape[0] == 1
    assert σ_inverse.shape[0] == 1
    npt.assert_almost_equal(μ[0], np.mean(T))
    npt.assert_almost_equal(σ_inverse[0], 1.0 / np.linalg.norm(T - np.mean(T)))


@pytest.mark.parametrize("T, w", invalid_window_data)
def test_muinvn_invalid(T, w):
    with pytest.raises(InvalidWindow):
        core.muinvn(T, w)
