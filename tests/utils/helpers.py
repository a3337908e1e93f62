"""
Test helper utilities for cctoolkit testing.

Helpers for creating stub executables that the real resolver can find,
canonicalize and spawn.
"""

import os
import stat
import sys
from pathlib import Path

import pytest

# Shell-script stubs need a POSIX shell and the executable bit.
posix_only = pytest.mark.skipif(
    sys.platform == "win32", reason="shell-script stub executables need POSIX"
)


def make_executable(directory: Path, name: str, body: str = "exit 0\n") -> Path:
    """
    Create an executable shell script ``directory/name``.

    Args:
        directory: Directory to create the script in (created if missing)
        name: File name of the script
        body: Shell code run by the script

    Returns:
        Path to the script

    Example:
        >>> cc = make_executable(tmp_path / "bin", "cc")
        >>> os.access(cc, os.X_OK)
        True
    """
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(f"#!/bin/sh\n{body}", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def make_stub_toolchain(directory: Path, *names: str) -> Path:
    """Create a do-nothing executable for each of ``names`` in ``directory``."""
    for name in names:
        make_executable(directory, name)
    return directory


def search_path(*directories: Path) -> str:
    """Join directories into a PATH value."""
    return os.pathsep.join(str(d) for d in directories)
