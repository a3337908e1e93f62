"""
Core functionality for cctoolkit.

This package contains the foundational modules that other components depend on.
"""

from .exceptions import (
    CCToolkitError,
    ToolchainError,
    ToolNotFound,
    ClassificationFailed,
    ProbeInfrastructureFailed,
    OverrideParseFailed,
    ConfigError,
    FlagTableError,
)

from .interfaces import (
    ProcessResult,
    ProcessRunner,
)

from .process import (
    SubprocessRunner,
    merged_environment,
)

from .locking import (
    SingleFlightCache,
)

from .platform import (
    PlatformInfo,
    detect_platform,
    default_host_triple,
    clear_platform_cache,
)

__all__ = [
    "CCToolkitError",
    "ToolchainError",
    "ToolNotFound",
    "ClassificationFailed",
    "ProbeInfrastructureFailed",
    "OverrideParseFailed",
    "ConfigError",
    "FlagTableError",
    "ProcessResult",
    "ProcessRunner",
    "SubprocessRunner",
    "merged_environment",
    "SingleFlightCache",
    "PlatformInfo",
    "detect_platform",
    "default_host_triple",
    "clear_platform_cache",
]
