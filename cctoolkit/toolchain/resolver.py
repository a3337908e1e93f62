"""
Executable resolution.

Turns a requested tool name or path into a verified, canonical, spawnable
``ResolvedTool``. This is the only way cctoolkit obtains a tool: every
resolved tool has been located on disk, canonicalized and started once.

Usage:
    from cctoolkit.toolchain.resolver import ExecutableResolver

    resolver = ExecutableResolver()
    gcc = resolver.resolve("gcc")
    print(gcc.path)          # /usr/bin/x86_64-linux-gnu-gcc-13
    print(gcc.requested)     # gcc
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..core.exceptions import ToolNotFound
from ..core.interfaces import ProcessRunner
from ..core.process import SubprocessRunner

logger = logging.getLogger(__name__)

_VERBATIM_UNC_PREFIX = "\\\\?\\UNC\\"
_VERBATIM_PREFIX = "\\\\?\\"


@dataclass(frozen=True)
class ResolvedTool:
    """
    A tool that was located, canonicalized and successfully spawned.

    Attributes:
        requested: The identifier the caller asked for (kept for diagnostics)
        path: Canonical path of the executable
        args: Fixed leading arguments (interpreter-run scripts only)
        env: Fixed environment overlay applied whenever the tool runs
        note: Free-text provenance of the tool
    """

    requested: str
    path: Path
    args: Tuple[str, ...] = ()
    env: Dict[str, str] = field(default_factory=dict, compare=False)
    note: str = ""

    @property
    def identity(self) -> Tuple[str, Tuple[str, ...]]:
        """Cache key for classification and flag probing."""
        return (str(self.path), tuple(self.args))

    @property
    def is_script(self) -> bool:
        """True when the tool is a script run through an interpreter."""
        return bool(self.args)

    def command(self) -> List[str]:
        """Return the argv prefix that starts this tool."""
        return [str(self.path), *self.args]

    def __str__(self) -> str:
        return " ".join(self.command())


def strip_verbatim_prefix(path: str) -> str:
    """
    Remove a Windows extended-length prefix from ``path``.

    Never fails; strings without a prefix are returned unchanged.

    Example:
        >>> strip_verbatim_prefix('\\\\\\\\?\\\\C:\\\\bin\\\\cl.exe')
        'C:\\\\bin\\\\cl.exe'
    """
    if path.startswith(_VERBATIM_UNC_PREFIX):
        return "\\\\" + path[len(_VERBATIM_UNC_PREFIX):]
    if path.startswith(_VERBATIM_PREFIX):
        return path[len(_VERBATIM_PREFIX):]
    return path


def _has_separator(name: str) -> bool:
    if "/" in name or os.sep in name:
        return True
    if os.altsep and os.altsep in name:
        return True
    return Path(name).is_absolute()


class ExecutableResolver:
    """
    Resolve requested executables to ResolvedTool instances.

    Example:
        >>> resolver = ExecutableResolver()
        >>> cc = resolver.resolve("cc", search_path=["/usr/bin"])
        >>> cc.path
        PosixPath('/usr/bin/x86_64-linux-gnu-gcc-13')
    """

    def __init__(self, runner: Optional[ProcessRunner] = None):
        """
        Initialize resolver.

        Args:
            runner: Process runner used for the spawn test
        """
        self.runner = runner or SubprocessRunner()

    def resolve(
        self,
        requested: str,
        search_path: Optional[Sequence[str]] = None,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        note: str = "",
    ) -> ResolvedTool:
        """
        Locate, canonicalize and spawn-test an executable.

        Names containing a path separator are taken as paths (relative ones
        are joined to ``cwd``). Bare names are searched for in
        ``search_path``, else in ``env['PATH']``, else in the process PATH.

        Args:
            requested: Bare executable name or path
            search_path: Explicit directories to search, in order
            cwd: Working directory. Defaults to the process working directory.
            env: Environment overlay used for the PATH lookup and the spawn test,
                and kept on the result for every later run of the tool
            note: Provenance recorded on the result

        Returns:
            ResolvedTool for the executable

        Raises:
            ToolNotFound: If the tool is not found, the working directory is
                inaccessible, canonicalization fails or the tool won't spawn
        """
        name = requested.strip()
        if not name:
            raise ToolNotFound(requested, "empty executable name")
        current_dir = self._current_dir(requested, cwd)

        if _has_separator(name):
            dirs = None
            candidate = Path(name)
            if not candidate.is_absolute():
                candidate = current_dir / candidate
            found = shutil.which(str(candidate))
        else:
            dirs = self._search_dirs(search_path, env, current_dir)
            found = shutil.which(name, path=os.pathsep.join(dirs)) if dirs else None

        if not found:
            raise ToolNotFound(
                requested,
                "executable not found",
                search_path=dirs,
                current_dir=str(current_dir),
            )

        try:
            canonical = Path(found).resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise ToolNotFound(
                requested,
                f"can't canonicalize {found}",
                search_path=dirs,
                current_dir=str(current_dir),
                os_error=str(e),
            ) from e
        canonical = Path(strip_verbatim_prefix(str(canonical)))

        tool = ResolvedTool(
            requested=requested,
            path=canonical,
            env=dict(env or {}),
            note=note or f"resolved from {found}",
        )
        self._spawn_test(tool, env, current_dir, dirs)
        logger.info(f"Resolved {requested!r} to {canonical}")
        return tool

    def resolve_script(
        self,
        interpreter: str,
        script: str,
        args: Sequence[str] = ("/c",),
        search_path: Optional[Sequence[str]] = None,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> ResolvedTool:
        """
        Resolve a script that must be started through an interpreter.

        The interpreter is resolved like any other tool; the script name is
        passed through unchanged for the interpreter to find.

        Args:
            interpreter: Interpreter name or path (e.g., 'cmd')
            script: Script to run (e.g., 'emcc.bat')
            args: Interpreter arguments placed before the script

        Returns:
            ResolvedTool whose command is ``[interpreter, *args, script]``

        Example:
            >>> tool = resolver.resolve_script("cmd", "emcc.bat")
            >>> tool.command()
            ['C:\\\\Windows\\\\System32\\\\cmd.exe', '/c', 'emcc.bat']
        """
        host = self.resolve(interpreter, search_path=search_path, cwd=cwd, env=env)
        tool = ResolvedTool(
            requested=script,
            path=host.path,
            args=(*args, script),
            env=dict(host.env),
            note=f"{script} run through {host.path}",
        )
        logger.info(f"Resolved {script!r} through interpreter {host.path}")
        return tool

    def _current_dir(self, requested: str, cwd: Optional[Path]) -> Path:
        try:
            current_dir = Path(cwd) if cwd is not None else Path.cwd()
        except OSError as e:
            raise ToolNotFound(
                requested,
                "current directory is inaccessible",
                os_error=str(e),
            ) from e

        if not current_dir.is_dir():
            raise ToolNotFound(
                requested,
                "working directory is inaccessible",
                current_dir=str(current_dir),
            )
        return current_dir

    def _search_dirs(
        self,
        search_path: Optional[Sequence[str]],
        env: Optional[Mapping[str, str]],
        current_dir: Path,
    ) -> List[str]:
        if search_path is not None:
            entries = list(search_path)
        elif env is not None and "PATH" in env:
            entries = env["PATH"].split(os.pathsep)
        else:
            entries = os.environ.get("PATH", "").split(os.pathsep)

        dirs = []
        for entry in entries:
            if not entry:
                continue
            directory = Path(entry)
            if not directory.is_absolute():
                directory = current_dir / directory
            dirs.append(str(directory))
        return dirs

    def _spawn_test(
        self,
        tool: ResolvedTool,
        env: Optional[Mapping[str, str]],
        current_dir: Path,
        dirs: Optional[List[str]],
    ) -> None:
        try:
            self.runner.spawn_test(tool.command(), env=env, cwd=current_dir)
        except OSError as e:
            raise ToolNotFound(
                tool.requested,
                f"can't spawn {tool.path}",
                search_path=dirs,
                current_dir=str(current_dir),
                os_error=str(e),
            ) from e


__all__ = [
    "ResolvedTool",
    "ExecutableResolver",
    "strip_verbatim_prefix",
]
