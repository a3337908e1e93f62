"""
Subprocess-backed process runner.

The only place in cctoolkit that actually spawns processes. There is no
timeout by default: a hung tool blocks its caller, and callers that need a
bound pass ``timeout`` explicitly; an expired run raises ``TimeoutError``.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence

from .interfaces import ProcessResult, ProcessRunner

logger = logging.getLogger(__name__)


def merged_environment(env: Optional[Mapping[str, str]]) -> Optional[Dict[str, str]]:
    """
    Layer ``env`` over the current process environment.

    Returns None when there is nothing to overlay so subprocess inherits the
    environment unchanged.
    """
    if not env:
        return None
    merged = dict(os.environ)
    merged.update(env)
    return merged


class SubprocessRunner(ProcessRunner):
    """ProcessRunner implementation built on the ``subprocess`` module."""

    def __init__(self, timeout: Optional[float] = None):
        """
        Initialize runner.

        Args:
            timeout: Optional caller-side bound in seconds for ``run``
        """
        self.timeout = timeout

    def run(
        self,
        argv: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ) -> ProcessResult:
        logger.debug(f"Running: {' '.join(str(a) for a in argv)}")
        try:
            result = subprocess.run(
                [str(a) for a in argv],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                errors="replace",
                env=merged_environment(env),
                cwd=str(cwd) if cwd else None,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise TimeoutError(f"{argv[0]} timed out after {e.timeout}s") from e
        logger.debug(f"Exit status {result.returncode} from {argv[0]}")
        return ProcessResult(
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    def spawn_test(
        self,
        argv: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ) -> None:
        logger.debug(f"Spawn test: {' '.join(str(a) for a in argv)}")
        process = subprocess.Popen(
            [str(a) for a in argv],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            env=merged_environment(env),
            cwd=str(cwd) if cwd else None,
        )
        # Reap the child; its exit status is irrelevant.
        process.wait()


__all__ = [
    "SubprocessRunner",
    "merged_environment",
]
