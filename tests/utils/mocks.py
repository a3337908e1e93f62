"""
Mock utilities for cctoolkit testing.

This module provides process runner and resolver stand-ins that honour the
same contracts as the real implementations without spawning compilers.
"""

import threading
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from cctoolkit.core.exceptions import ToolNotFound
from cctoolkit.core.interfaces import ProcessResult, ProcessRunner
from cctoolkit.toolchain.family import CLANG_MARKER, GNU_MARKER, MSVC_MARKER
from cctoolkit.toolchain.resolver import ExecutableResolver, ResolvedTool

FAMILY_OUTPUT = {
    "gnu": f'# 1 "detect_family.c"\n{GNU_MARKER}\n',
    "clang": f'# 1 "detect_family.c"\n{CLANG_MARKER}\n',
    "msvc": f'#line 1 "detect_family.c"\n{MSVC_MARKER}\n',
}


class RecordingRunner(ProcessRunner):
    """
    ProcessRunner that records every call and answers from a handler.

    Args:
        handler: Called with the argv of every ``run``; returns a
            ProcessResult or raises OSError. Defaults to exit status 0.
        spawn_failures: Program paths whose spawn test raises OSError
        family: When set, ``-E`` preprocessing calls answer with the marker
            of this family ('gnu', 'clang' or 'msvc')

    Example:
        >>> runner = RecordingRunner(family="gnu")
        >>> runner.run(["/usr/bin/cc", "-E", "probe.c"]).stdout
        '# 1 "detect_family.c"\\n__CCTOOLKIT_FAMILY_GNU__\\n'
    """

    def __init__(
        self,
        handler: Optional[Callable[[List[str]], ProcessResult]] = None,
        spawn_failures: Sequence[str] = (),
        family: Optional[str] = None,
    ):
        self.handler = handler
        self.spawn_failures = {str(p) for p in spawn_failures}
        self.family = family
        self.calls: List[List[str]] = []
        self.envs: List[Dict[str, str]] = []
        self.spawned: List[List[str]] = []
        self._lock = threading.Lock()

    def run(
        self,
        argv: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ) -> ProcessResult:
        argv = [str(a) for a in argv]
        with self._lock:
            self.calls.append(argv)
            self.envs.append(dict(env or {}))
        if self.family is not None and "-E" in argv:
            return ProcessResult(0, stdout=FAMILY_OUTPUT[self.family])
        if self.handler is not None:
            return self.handler(argv)
        return ProcessResult(0)

    def spawn_test(
        self,
        argv: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ) -> None:
        argv = [str(a) for a in argv]
        with self._lock:
            self.spawned.append(argv)
        if argv[0] in self.spawn_failures:
            raise PermissionError(13, "Permission denied", argv[0])

    def calls_with(self, token: str) -> List[List[str]]:
        """Recorded ``run`` calls whose argv contains ``token``."""
        return [call for call in self.calls if token in call]

    def envs_with(self, token: str) -> List[Dict[str, str]]:
        """Environment overlays of the ``run`` calls whose argv contains ``token``."""
        return [env for call, env in zip(self.calls, self.envs) if token in call]


class StaticResolver(ExecutableResolver):
    """
    Resolver backed by a fixed name -> path table.

    Example:
        >>> resolver = StaticResolver({"cc": "/usr/bin/gcc"})
        >>> resolver.resolve("cc").path
        PosixPath('/usr/bin/gcc')
    """

    def __init__(self, tools: Dict[str, str]):
        super().__init__(RecordingRunner())
        self.tools = {name: Path(path) for name, path in tools.items()}
        self.requests: List[str] = []

    def resolve(self, requested, search_path=None, cwd=None, env=None, note=""):
        self.requests.append(requested)
        name = requested.strip()
        if name in self.tools:
            return ResolvedTool(requested=requested, path=self.tools[name], note=note)
        for path in self.tools.values():
            if str(path) == name:
                return ResolvedTool(requested=requested, path=path, note=note)
        raise ToolNotFound(requested, "executable not found", search_path=search_path)


def make_tool(path: str = "/usr/bin/cc", requested: Optional[str] = None) -> ResolvedTool:
    """Create a ResolvedTool without going through a resolver."""
    return ResolvedTool(requested=requested or Path(path).name, path=Path(path))
