"""
Compiler wrapper registry and detection.

Compilation caches and distributors (ccache, sccache, distcc, icecc) are run
in place of the real compiler and receive the compiler as their first
argument. This module keeps the set of known wrapper names in one explicit
registry and can locate installed wrappers on a search path.

Usage:
    from cctoolkit.caching.detection import KNOWN_WRAPPERS, WrapperDetector

    KNOWN_WRAPPERS.is_wrapper("/usr/bin/ccache")     # True
    KNOWN_WRAPPERS.is_wrapper("CCACHE.EXE")          # True

    detector = WrapperDetector()
    for name, path in detector.detect_available().items():
        print(f"{name}: {path}")
"""

import logging
import os
import re
import shutil
from pathlib import Path, PureWindowsPath
from typing import Dict, Iterable, List, Optional, Sequence

from ..core.interfaces import ProcessRunner
from ..core.process import SubprocessRunner

logger = logging.getLogger(__name__)


def tool_stem(token: str) -> str:
    """
    Return the lower-cased file stem of a tool token.

    Both separators are honoured regardless of host so that Windows paths
    in environment variables are recognised on any platform.

    Example:
        >>> tool_stem('C:\\\\tools\\\\SCCACHE.exe')
        'sccache'
        >>> tool_stem('/usr/lib/ccache/cc')
        'cc'
    """
    name = PureWindowsPath(token).name.lower()
    if name.endswith(".exe"):
        name = name[:-4]
    return name


class WrapperRegistry:
    """
    Explicit set of program names treated as compiler wrappers.

    Matching is by file stem, case-insensitive, with ``.exe`` stripped, so
    '/opt/bin/sccache' and 'SCCACHE.EXE' both match 'sccache'.
    """

    def __init__(self, names: Iterable[str] = ()):
        self._names: List[str] = []
        for name in names:
            self.register(name)

    def register(self, name: str) -> None:
        """Add ``name`` to the registry (no-op when already present)."""
        stem = tool_stem(name)
        if not stem:
            raise ValueError("Wrapper name cannot be empty")
        if stem not in self._names:
            self._names.append(stem)
            logger.debug(f"Registered compiler wrapper: {stem}")

    def is_wrapper(self, token: str) -> bool:
        return tool_stem(token) in self._names

    def names(self) -> List[str]:
        return list(self._names)

    def copy(self) -> "WrapperRegistry":
        return WrapperRegistry(self._names)

    def __contains__(self, token: str) -> bool:
        return self.is_wrapper(token)

    def __iter__(self):
        return iter(list(self._names))

    def __len__(self) -> int:
        return len(self._names)


KNOWN_WRAPPERS = WrapperRegistry(["ccache", "sccache", "distcc", "icecc"])


class WrapperDetector:
    """
    Locate installed compiler wrappers.

    Example:
        >>> detector = WrapperDetector()
        >>> path = detector.detect("sccache")
        >>> if path:
        ...     print(detector.get_version(path))
    """

    def __init__(
        self,
        registry: Optional[WrapperRegistry] = None,
        runner: Optional[ProcessRunner] = None,
    ):
        """
        Initialize detector.

        Args:
            registry: Wrapper names to look for. Defaults to KNOWN_WRAPPERS.
            runner: Process runner used for version queries
        """
        self.registry = registry or KNOWN_WRAPPERS
        self.runner = runner or SubprocessRunner()

    def detect(
        self, name: str, search_path: Optional[Sequence[str]] = None
    ) -> Optional[Path]:
        """
        Find wrapper ``name`` on the search path.

        Args:
            name: Wrapper program name (e.g., 'ccache')
            search_path: Directories to search. Defaults to PATH.

        Returns:
            Path to the wrapper executable, or None if not found
        """
        path = None if search_path is None else os.pathsep.join(search_path)
        found = shutil.which(name, path=path)
        if found:
            logger.info(f"Found {name} on PATH: {found}")
            return Path(found)

        logger.debug(f"{name} not found")
        return None

    def detect_available(
        self, search_path: Optional[Sequence[str]] = None
    ) -> Dict[str, Path]:
        """
        Find every registered wrapper that is installed.

        Returns:
            Mapping of wrapper name to executable path, in registry order
        """
        available = {}
        for name in self.registry:
            path = self.detect(name, search_path)
            if path:
                available[name] = path
        return available

    def get_version(self, executable: Path) -> Optional[str]:
        """
        Get the version string reported by a wrapper.

        Args:
            executable: Path to the wrapper executable

        Returns:
            Version string (e.g., '4.8.3'), or None if it cannot be determined

        Example:
            >>> detector = WrapperDetector()
            >>> detector.get_version(Path('/usr/bin/ccache'))
            '4.8.3'
        """
        try:
            result = self.runner.run([str(executable), "--version"])
        except OSError as e:
            logger.warning(f"Failed to query version of {executable}: {e}")
            return None

        if not result.success:
            logger.debug(
                f"{executable} --version exited with {result.returncode}"
            )
            return None

        # "ccache version 4.8.3", "sccache 0.7.4", "distcc 3.4 x86_64-pc-linux-gnu"
        match = re.search(r"(\d+\.\d+(?:\.\d+)?)", result.stdout)
        if match:
            version = match.group(1)
            logger.debug(f"Detected {executable.name} version: {version}")
            return version

        logger.debug(f"Could not parse version from: {result.stdout.strip()}")
        return None


__all__ = [
    "KNOWN_WRAPPERS",
    "WrapperRegistry",
    "WrapperDetector",
    "tool_stem",
]
