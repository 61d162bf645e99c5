# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.

import warnings

_MPCORE_DEFAULTS = {
    "MPCORE_MEAN_STD_NUM_CHUNKS": 1,
    "MPCORE_MEAN_STD_MAX_ITER": 10,
    "MPCORE_TEST_PRECISION": 5,
    "MPCORE_FASTMATH_FLAGS": {"nsz", "arcp", "contract", "afn", "reassoc"},
}

# The default fastmath flag of every njit function is also registered here
# under the name MPCORE_FASTMATH_<module_name>.<function_name>
# See __init__.py for more details

MPCORE_MEAN_STD_NUM_CHUNKS = _MPCORE_DEFAULTS["MPCORE_MEAN_STD_NUM_CHUNKS"]
MPCORE_MEAN_STD_MAX_ITER = _MPCORE_DEFAULTS["MPCORE_MEAN_STD_MAX_ITER"]
MPCORE_TEST_PRECISION = _MPCORE_DEFAULTS["MPCORE_TEST_PRECISION"]
MPCORE_FASTMATH_FLAGS = _MPCORE_DEFAULTS["MPCORE_FASTMATH_FLAGS"]


def _reset(var=None):
    """
    Restore one or all configuration variables to their default values

    Parameters
    ----------
    var : str, default None
        The name of the configuration variable. When None, every configuration
        variable is restored.

    Returns
    -------
    None
    """
    config_vars = [
        k for k, _ in globals().items() if k.isupper() and k.startswith("MPCORE")
    ]

    if var is None:
        for config_var in config_vars:
            globals()[config_var] = _MPCORE_DEFAULTS[config_var]
    elif var in config_vars:
        globals()[var] = _MPCORE_DEFAULTS[var]
    else:
        msg = f"Skipped resetting unrecognized configuration variable '{var}'"
        warnings.warn(msg)

    return
