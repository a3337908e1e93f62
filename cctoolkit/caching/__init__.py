"""
Compiler wrapper support for cctoolkit.

This package knows about compilation caches and distributors that are run in
front of the real compiler (ccache, sccache, distcc, icecc).

Modules:
    detection: Known wrapper registry and detection on PATH
    launcher: Parse compiler overrides that name a wrapper and extra flags
"""

from .detection import (
    KNOWN_WRAPPERS,
    WrapperRegistry,
    WrapperDetector,
    tool_stem,
)
from .launcher import (
    WrapperInvocation,
    ParsedOverride,
    CompilerOverrideParser,
)

__all__ = [
    "KNOWN_WRAPPERS",
    "WrapperRegistry",
    "WrapperDetector",
    "tool_stem",
    "WrapperInvocation",
    "ParsedOverride",
    "CompilerOverrideParser",
]
