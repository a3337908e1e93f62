"""
Core interfaces for cctoolkit.

This module defines the abstract interfaces that the toolchain layer depends
on. Resolution, classification and flag probing only ever talk to real tools
through a ProcessRunner, so tests can substitute a stub that honours the same
output contract without spawning compilers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence


@dataclass(frozen=True)
class ProcessResult:
    """
    Captured outcome of a finished process.

    Attributes:
        returncode: Exit status of the process
        stdout: Captured standard output (decoded text)
        stderr: Captured standard error (decoded text)
    """

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        """True when the process exited with status 0."""
        return self.returncode == 0


class ProcessRunner(ABC):
    """
    Abstract capability: run a process, capture exit status and output.

    Implementations must raise ``OSError`` (or a subclass) when the process
    cannot be started at all or does not finish in time (``TimeoutError``). A
    process that starts and exits with a non-zero status is *not* an error at
    this layer.
    """

    @abstractmethod
    def run(
        self,
        argv: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ) -> ProcessResult:
        """
        Run ``argv`` to completion and capture its output.

        Args:
            argv: Program followed by its arguments
            env: Variables layered over the current environment
            cwd: Working directory for the process

        Returns:
            ProcessResult with exit status and decoded output

        Raises:
            OSError: If the process could not be spawned or timed out
        """
        pass

    @abstractmethod
    def spawn_test(
        self,
        argv: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ) -> None:
        """
        Start ``argv`` with all standard streams redirected to a null sink.

        The process is not required to succeed, only to start.

        Raises:
            OSError: If the process could not be spawned
        """
        pass


__all__ = [
    "ProcessResult",
    "ProcessRunner",
]
