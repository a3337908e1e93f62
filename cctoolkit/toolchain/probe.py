"""
Flag support probing.

Answers "does this compiler accept this flag?" by compiling an empty
translation unit with the flag and looking at the exit status and stderr.
Answers are cached for the life of the process, keyed by tool identity,
language and flag, and at most one trial compile per key is ever in flight.
"""

import logging
import tempfile
from enum import Enum
from pathlib import Path
from typing import Hashable, Optional, Tuple

from ..core.exceptions import ProbeInfrastructureFailed
from ..core.interfaces import ProcessRunner
from ..core.locking import SingleFlightCache
from ..core.process import SubprocessRunner
from .family import ToolFamily
from .resolver import ResolvedTool

logger = logging.getLogger(__name__)

ProbeKey = Tuple[Tuple[str, Tuple[str, ...]], str, str]


class ProbeState(Enum):
    """State of one cache entry."""

    SUPPORTED = "supported"
    UNSUPPORTED = "unsupported"
    PENDING = "pending"


class FlagProbeCache:
    """
    Process-lifetime memo of flag probe outcomes.

    Built on SingleFlightCache: concurrent requests for the same key wait
    for the one running trial. Failed trials leave no entry behind.
    """

    def __init__(self):
        self._flights: SingleFlightCache[bool] = SingleFlightCache()

    @staticmethod
    def key(tool: ResolvedTool, language: str, flag: str) -> ProbeKey:
        return (tool.identity, language, flag)

    def state(self, key: Hashable) -> Optional[ProbeState]:
        """
        Inspect a key without waiting.

        Returns:
            ProbeState, or None when nothing is cached for ``key``
        """
        if self._flights.is_pending(key):
            return ProbeState.PENDING
        if key not in self._flights:
            return None
        value = self._flights.get(key)
        if value is None:
            return None
        return ProbeState.SUPPORTED if value else ProbeState.UNSUPPORTED

    def get_or_probe(self, key: Hashable, probe) -> bool:
        return self._flights.get_or_compute(key, probe)

    def clear(self) -> None:
        self._flights.clear()

    def __len__(self) -> int:
        return len(self._flights)


class FlagSupportProber:
    """
    Decide whether a compiler accepts a flag.

    Example:
        >>> prober = FlagSupportProber(FlagTableLoader(), FlagProbeCache())
        >>> prober.is_supported(gcc, ToolFamily.GNU, "-fno-plt")
        True
    """

    def __init__(
        self,
        tables,
        cache: Optional[FlagProbeCache] = None,
        runner: Optional[ProcessRunner] = None,
    ):
        """
        Initialize prober.

        Args:
            tables: FlagTableLoader supplying compile switches and the
                stderr phrases that signal an unsupported flag
            cache: Shared probe cache. A private one is created when omitted.
            runner: Process runner used for trial compiles
        """
        self.tables = tables
        self.cache = cache if cache is not None else FlagProbeCache()
        self.runner = runner or SubprocessRunner()

    def is_supported(
        self,
        tool: ResolvedTool,
        family: ToolFamily,
        flag: str,
        cpp: bool = False,
    ) -> bool:
        """
        Check whether ``tool`` accepts ``flag``.

        Args:
            tool: Resolved compiler
            family: Family of the compiler
            flag: Candidate flag
            cpp: Probe as C++ instead of C

        Returns:
            True if a trial compile with the flag succeeds without complaint

        Raises:
            ProbeInfrastructureFailed: If the trial compile can't be started
        """
        language = "c++" if cpp else "c"
        key = FlagProbeCache.key(tool, language, flag)

        if self.cache.state(key) in (ProbeState.SUPPORTED, ProbeState.UNSUPPORTED):
            logger.debug(f"Probe cache hit for {flag} with {tool.path}")

        return self.cache.get_or_probe(
            key, lambda: self._trial(tool, family, flag, cpp)
        )

    def _trial(
        self, tool: ResolvedTool, family: ToolFamily, flag: str, cpp: bool
    ) -> bool:
        table = self.tables.load(family)

        with tempfile.TemporaryDirectory(prefix="cctoolkit-probe-") as tmp:
            source = Path(tmp) / ("flag_check.cpp" if cpp else "flag_check.c")
            source.write_text("", encoding="utf-8")
            obj = Path(tmp) / "flag_check.o"

            argv = [*tool.command(), flag, *table.per_file(source, obj)]
            try:
                result = self.runner.run(argv, env=tool.env or None, cwd=Path(tmp))
            except OSError as e:
                raise ProbeInfrastructureFailed(flag, str(tool.path), str(e)) from e

        supported = result.success and not table.rejects_flag(result.stderr)
        logger.debug(
            f"Flag {flag} is {'supported' if supported else 'unsupported'} "
            f"by {tool.path} (exit status {result.returncode})"
        )
        return supported


__all__ = [
    "ProbeState",
    "FlagProbeCache",
    "FlagSupportProber",
]
