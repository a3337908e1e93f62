"""
Tool family classification.

Decides which flag dialect a compiler speaks: GNU, Clang or MSVC. The
decision is made by preprocessing a small probe source with the real tool
and looking at which vendor guard survived, so renamed or wrapped compilers
(``cc``, ``x86_64-linux-gnu-gcc-13``, ``emcc``) are classified by what they
are rather than by what they are called.
"""

import logging
import tempfile
from enum import Enum
from pathlib import Path
from typing import Optional

from ..caching.detection import tool_stem
from ..core.exceptions import ClassificationFailed
from ..core.interfaces import ProcessRunner
from ..core.locking import SingleFlightCache
from ..core.process import SubprocessRunner
from .resolver import ResolvedTool

logger = logging.getLogger(__name__)


class ToolFamily(Enum):
    """Flag dialect of a compiler."""

    GNU = "gnu"
    CLANG = "clang"
    MSVC = "msvc"

    @classmethod
    def from_name(cls, name: str) -> "ToolFamily":
        """
        Look up a family by its name, case-insensitive.

        Raises:
            ValueError: If ``name`` is not a family name
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(member.value for member in cls)
            raise ValueError(
                f"Unknown tool family: {name!r}. Valid families: {valid}"
            ) from None

    @property
    def is_gnu_like(self) -> bool:
        """True for families that accept GNU-style option spellings."""
        return self in (ToolFamily.GNU, ToolFamily.CLANG)

    def __str__(self) -> str:
        return self.value


# Stems that are MSVC-style drivers; classified without running them.
MSVC_DRIVER_STEMS = ("cl", "clang-cl")

MSVC_MARKER = "__CCTOOLKIT_FAMILY_MSVC__"
CLANG_MARKER = "__CCTOOLKIT_FAMILY_CLANG__"
GNU_MARKER = "__CCTOOLKIT_FAMILY_GNU__"

PROBE_SOURCE = f"""\
#if defined(_MSC_VER) && !defined(__clang__)
{MSVC_MARKER}
#endif
#if defined(__clang__)
{CLANG_MARKER}
#endif
#if defined(__GNUC__) && !defined(__clang__)
{GNU_MARKER}
#endif
"""


def family_from_output(output: str) -> Optional[ToolFamily]:
    """
    Interpret preprocessed probe output.

    Returns:
        The family whose marker is present, or None when no marker survived
    """
    if MSVC_MARKER in output:
        return ToolFamily.MSVC
    if CLANG_MARKER in output:
        return ToolFamily.CLANG
    if GNU_MARKER in output:
        return ToolFamily.GNU
    return None


class ToolFamilyClassifier:
    """
    Classify resolved tools into a ToolFamily.

    Results are memoized per tool identity; concurrent callers classifying
    the same tool share a single probe run.

    Example:
        >>> classifier = ToolFamilyClassifier()
        >>> classifier.classify(resolver.resolve("gcc"))
        <ToolFamily.GNU: 'gnu'>
    """

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        cache: Optional[SingleFlightCache] = None,
    ):
        """
        Initialize classifier.

        Args:
            runner: Process runner used to run the probe
            cache: Memo shared between classifiers. A private one is created
                when omitted.
        """
        self.runner = runner or SubprocessRunner()
        self.cache: SingleFlightCache = cache if cache is not None else SingleFlightCache()

    def classify(self, tool: ResolvedTool) -> ToolFamily:
        """
        Determine the family of ``tool``.

        Args:
            tool: Tool returned by the ExecutableResolver

        Returns:
            ToolFamily of the tool

        Raises:
            ClassificationFailed: If the probe can't be run or no marker is
                found in its output
        """
        if not tool.is_script and tool_stem(str(tool.path)) in MSVC_DRIVER_STEMS:
            logger.debug(f"{tool.path} is an MSVC-style driver by name")
            return ToolFamily.MSVC

        return self.cache.get_or_compute(
            ("family", tool.identity), lambda: self._run_probe(tool)
        )

    def _run_probe(self, tool: ResolvedTool) -> ToolFamily:
        with tempfile.TemporaryDirectory(prefix="cctoolkit-family-") as tmp:
            source = Path(tmp) / "detect_family.c"
            source.write_text(PROBE_SOURCE, encoding="utf-8")

            argv = [*tool.command(), "-E", str(source)]
            try:
                result = self.runner.run(argv, env=tool.env or None, cwd=Path(tmp))
            except OSError as e:
                raise ClassificationFailed(
                    tool.requested, str(tool.path), f"failed to run probe: {e}"
                ) from e

        family = family_from_output(result.stdout + "\n" + result.stderr)
        if family is None:
            raise ClassificationFailed(
                tool.requested,
                str(tool.path),
                f"no family marker in probe output (exit status {result.returncode})",
            )

        logger.info(f"Classified {tool.path} as {family.value}")
        return family


__all__ = [
    "ToolFamily",
    "ToolFamilyClassifier",
    "family_from_output",
    "MSVC_DRIVER_STEMS",
]
