"""
Configuration for cctoolkit: the cctoolkit.yaml parser and the
environment variable lookup rules.
"""

from .parser import (
    BuildSettings,
    CCToolkitConfig,
    parse_config,
)
from .environment import (
    BuildEnvironment,
)

__all__ = [
    "BuildSettings",
    "CCToolkitConfig",
    "parse_config",
    "BuildEnvironment",
]
