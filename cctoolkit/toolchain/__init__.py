"""
Compiler toolchain handling.

Modules:
    resolver: Locate and verify executables
    family: Classify compilers into GNU, Clang or MSVC
    probe: Check whether a compiler accepts a flag
"""

from .resolver import (
    ResolvedTool,
    ExecutableResolver,
    strip_verbatim_prefix,
)
from .family import (
    ToolFamily,
    ToolFamilyClassifier,
)
from .probe import (
    ProbeState,
    FlagProbeCache,
    FlagSupportProber,
)

__all__ = [
    "ResolvedTool",
    "ExecutableResolver",
    "strip_verbatim_prefix",
    "ToolFamily",
    "ToolFamilyClassifier",
    "ProbeState",
    "FlagProbeCache",
    "FlagSupportProber",
]
