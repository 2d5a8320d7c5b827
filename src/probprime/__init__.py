from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

# Version
try:
    __version__ = _pkg_version("probprime")
except PackageNotFoundError:
    __version__ = "0+unknown"

# Public API re-exports
from .config import has_profile, load_settings, read_current_profile
from .primality import (
    DEFAULT_WITNESSES,
    PrimalityReport,
    WitnessOutcome,
    WitnessTaskError,
    check_primality,
    is_probably_prime,
)
from .runtime import APPLY, CFG
from .sampler import InvalidRangeError, random_in_range
from .witness import Decomposition, decompose, evaluate
from .workspace import workspace_dir

__all__ = [
    "APPLY",
    "CFG",
    "DEFAULT_WITNESSES",
    "Decomposition",
    "InvalidRangeError",
    "PrimalityReport",
    "WitnessOutcome",
    "WitnessTaskError",
    "__version__",
    "check_primality",
    "decompose",
    "evaluate",
    "has_profile",
    "is_probably_prime",
    "load_settings",
    "random_in_range",
    "read_current_profile",
    "workspace_dir",
]
