# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.

import numpy as np


def binary_split(lb, ub):
    """
    Generate an "anytime" ordering of every integer in the inclusive range
    `[lb, ub]` by repeated bisection

    The lower bound is emitted first. The remaining range, `[lb + 1, ub]`, is then
    bisected in breadth first (level) order: each pending sub-range emits its
    midpoint and is replaced by its left half followed by its right half. Thus,
    any prefix of the output is spread as evenly as possible across the range and
    processing diagonals (or indices) in this order allows a computation to be
    stopped early while still producing a representative approximate result.

    Example:

    If `lb = 0` and `ub = 9` then `0` is emitted first and the remaining range,
    `[1, 9]`, is bisected as follows:

                5
               * *
              *   *
             *     *
            *       *
           2         7
          * *       * *
         *   *     *   *
        1     3   6     8
               *         *
                4         9

    And traversing each level from left to right yields
    `[0, 5, 2, 7, 1, 3, 6, 8, 4, 9]`.

    Parameters
    ----------
    lb : int
        The (inclusive) lower bound

    ub : int
        The (inclusive) upper bound

    Returns
    -------
    out : numpy.ndarray
        A permutation of `[lb, ub]`. This is empty when `lb > ub`.

    Raises
    ------
    ValueError
        If `lb` or `ub` is not an integer
    """
    for name, val in (("lb", lb), ("ub", ub)):
        if isinstance(val, (bool, np.bool_)) or not isinstance(val, (int, np.integer)):
            raise ValueError(f"`{name}` must be an integer but found {val!r}")

    lb = int(lb)
    ub = int(ub)
    if lb > ub:
        return np.empty(0, dtype=np.int64)

    out = np.empty(ub - lb + 1, dtype=np.int64)
    out[0] = lb
    out_idx = 1

    if lb < ub:
        lower = np.array([lb + 1], dtype=np.int64)
        upper = np.array([ub], dtype=np.int64)
    else:
        lower = np.empty(0, dtype=np.int64)
        upper = np.empty(0, dtype=np.int64)

    while lower.shape[0] > 0:
        nidx = lower.shape[0]
        level_indices = lower + (upper - lower) // 2

        out[out_idx : out_idx + nidx] = level_indices
        out_idx += nidx

        # Left halves are interleaved with right halves to preserve the order
        tmp_lower = np.empty(2 * nidx, dtype=np.int64)
        tmp_upper = np.empty(2 * nidx, dtype=np.int64)
        tmp_lower[0::2] = lower
        tmp_lower[1::2] = level_indices + 1
        tmp_upper[0::2] = level_indices - 1
        tmp_upper[1::2] = upper

        mask = tmp_lower <= tmp_upper
        lower = tmp_lower[mask]
        upper = tmp_upper[mask]

    return out
