import importlib
from importlib.metadata import PackageNotFoundError, version

import numba

from . import cache, config
from .batching import (  # noqa: F401
    Batch,
    batch_costs,
    batch_indices,
    diag_batching_scheme,
)
from .core import movmeanstd, muinvn, z_norm  # noqa: F401
from .errors import InvalidPartition, InvalidStatistics, InvalidWindow  # noqa: F401
from .order import binary_split  # noqa: F401

# Get the default fastmath flags for all njit functions
# and update the _MPCORE_DEFAULTS dictionary

if not numba.config.DISABLE_JIT:  # pragma: no cover
    njit_funcs = cache.get_njit_funcs()
    for module_name, func_name in njit_funcs:
        module = importlib.import_module(f".{module_name}", package="mpcore")
        func = getattr(module, func_name)
        key = module_name + "." + func_name  # e.g., core._welford_nanvar
        key = "MPCORE_FASTMATH_" + key.upper()
        config._MPCORE_DEFAULTS[key] = func.targetoptions["fastmath"]

try:
    __version__ = version("mpcore")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "Please install this project with setup.py"
