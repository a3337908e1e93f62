"""
Test utilities for cctoolkit testing.

This package provides process runner stand-ins and helpers for creating stub
executables.
"""

from .helpers import (
    make_executable,
    make_stub_toolchain,
    posix_only,
    search_path,
)
from .mocks import (
    FAMILY_OUTPUT,
    RecordingRunner,
    StaticResolver,
    make_tool,
)

__all__ = [
    "make_executable",
    "make_stub_toolchain",
    "posix_only",
    "search_path",
    "FAMILY_OUTPUT",
    "RecordingRunner",
    "StaticResolver",
    "make_tool",
]
