"""
Build environment variable lookup.

Compiler selection and raw flags can be steered from the environment
(``CC``, ``CXX``, ``CFLAGS``, ``CXXFLAGS``, ``AR``), optionally per target::

    CC_aarch64-unknown-linux-gnu    exact target
    CC_aarch64_unknown_linux_gnu    target with underscores
    TARGET_CC / HOST_CC             cross vs. native build
    CC                              everything else

Values from the build settings' ``env`` mapping take precedence over the
process environment for every name.
"""

import logging
import os
from typing import Dict, List, Mapping, Optional

from ..cross.targets import TargetTriple

logger = logging.getLogger(__name__)


class BuildEnvironment:
    """
    Target-aware view over explicit overrides and the process environment.

    Example:
        >>> env = BuildEnvironment(
        ...     TargetTriple.parse('aarch64-unknown-linux-gnu'),
        ...     TargetTriple.parse('x86_64-unknown-linux-gnu'),
        ...     process_env={'TARGET_CC': 'aarch64-linux-gnu-gcc'},
        ... )
        >>> env.compiler_override(cpp=False)
        'aarch64-linux-gnu-gcc'
    """

    def __init__(
        self,
        target: TargetTriple,
        host: TargetTriple,
        overrides: Optional[Mapping[str, str]] = None,
        process_env: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize environment view.

        Args:
            target: Triple being compiled for
            host: Triple of the build machine
            overrides: Explicit variables (the settings' ``env``)
            process_env: Ambient environment. Defaults to os.environ.
        """
        self.target = target
        self.host = host
        self.overrides: Dict[str, str] = dict(overrides or {})
        self.process_env = process_env if process_env is not None else os.environ

    def candidates(self, var: str) -> List[str]:
        """
        Names consulted for ``var``, most specific first.

        Example:
            >>> env.candidates('CC')
            ['CC_aarch64-unknown-linux-gnu', 'CC_aarch64_unknown_linux_gnu', 'TARGET_CC', 'CC']
        """
        kind = "HOST" if self.target.raw == self.host.raw else "TARGET"
        names = [f"{var}_{self.target.raw}", f"{var}_{self.target.underscored()}"]
        names += [f"{kind}_{var}", var]
        # Dedupe while keeping order (triples without dashes).
        return list(dict.fromkeys(names))

    def lookup(self, name: str) -> Optional[str]:
        """Look up one exact name, explicit overrides first."""
        if name in self.overrides:
            return self.overrides[name]
        return self.process_env.get(name)

    def get(self, var: str) -> Optional[str]:
        """
        Get the most specific value set for ``var``.

        Returns:
            The value, or None when no candidate name is set
        """
        for name in self.candidates(var):
            value = self.lookup(name)
            if value is not None:
                logger.debug(f"{var} taken from {name}={value!r}")
                return value
        return None

    def compiler_override(self, cpp: bool) -> Optional[str]:
        """
        Return the ``CC``/``CXX`` override, or None.

        Empty and whitespace-only values count as no override.
        """
        value = self.get("CXX" if cpp else "CC")
        if value is None or not value.strip():
            return None
        return value

    def archiver_override(self) -> Optional[str]:
        value = self.get("AR")
        if value is None or not value.strip():
            return None
        return value

    def raw_flags(self, cpp: bool) -> List[str]:
        """Tokens from ``CXXFLAGS`` (C++) or ``CFLAGS`` (C)."""
        value = self.get("CXXFLAGS" if cpp else "CFLAGS")
        return value.split() if value else []

    def has_raw_flags(self) -> bool:
        """
        True when either ``CFLAGS`` or ``CXXFLAGS`` is non-empty.

        The assembler drops its base warning flags in that case.
        """
        return any(
            (self.get(var) or "").strip() for var in ("CFLAGS", "CXXFLAGS")
        )

    def path(self) -> Optional[str]:
        """Return the ``PATH`` used for tool lookup."""
        return self.lookup("PATH")

    def search_path(self) -> Optional[List[str]]:
        """Directories of ``PATH``, or None when PATH is unset."""
        value = self.path()
        if value is None:
            return None
        return [entry for entry in value.split(os.pathsep) if entry]

    def tool_env(self) -> Dict[str, str]:
        """Environment overlay for processes started on behalf of the build."""
        return dict(self.overrides)


__all__ = [
    "BuildEnvironment",
]
