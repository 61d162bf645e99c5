# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.

import importlib
import warnings

import numba

from . import config


def _set(module_name, func_name, flag):
    """
    Set the fastmath flag of an njit function

    Parameters
    ----------
    module_name : str
        The module name, e.g. "core"

    func_name : str
        The function name, e.g. "_rolling_nanstd_1d"

    flag : set or bool
        The fastmath flag

    Returns
    -------
    None

    Notes
    -----
    The new flag only takes effect once `cache._recompile()` has been called.
    """
    module = importlib.import_module(f".{module_name}", package="mpcore")
    func = getattr(module, func_name)
    try:
        func.targetoptions["fastmath"] = flag
        msg = "One or more fastmath flags have been set/reset. "
        msg += "Please call `cache._recompile()` to ensure that all njit functions "
        msg += "are properly recompiled."
        warnings.warn(msg)
    except AttributeError as e:
        if numba.config.DISABLE_JIT and (
            str(e) == "'function' object has no attribute 'targetoptions'"
        ):
            warnings.warn("Fastmath flags could not be set as Numba JIT is disabled")
        else:  # pragma: no cover
            raise

    return


def _reset(module_name, func_name):
    """
    Restore the fastmath flag of an njit function to its default value

    Parameters
    ----------
    module_name : str
        The module name

    func_name : str
        The function name

    Returns
    -------
    None
    """
    key = "MPCORE_FASTMATH_" + f"{module_name}.{func_name}".upper()
    _set(module_name, func_name, config._MPCORE_DEFAULTS[key])

    return
