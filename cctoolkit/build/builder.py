"""
Build orchestration.

Ties the pieces together for one BuildSettings: picks the compiler (from an
override or the target's default tool names), resolves and classifies it,
assembles the shared arguments and hands out per-file CompileInvocation and
ArchiveInvocation objects. Running the invocations is left to the caller.

Usage:
    from cctoolkit.build.builder import Build
    from cctoolkit.config.parser import BuildSettings

    build = Build(BuildSettings(opt_level="2", debug=True))
    invocation = build.compile_invocation("src/foo.c", "out/foo.o")
    subprocess.run(invocation.command(), env=..., check=True)
"""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..caching.detection import KNOWN_WRAPPERS, WrapperRegistry
from ..caching.launcher import CompilerOverrideParser, ParsedOverride
from ..config.environment import BuildEnvironment
from ..config.parser import BuildSettings
from ..core.interfaces import ProcessRunner
from ..core.locking import SingleFlightCache
from ..core.platform import default_host_triple
from ..core.process import SubprocessRunner
from ..cross.targets import TargetTriple, default_tools
from ..flags.assembler import ArgumentAssembler
from ..flags.tables import FlagTableLoader
from ..toolchain.family import ToolFamily, ToolFamilyClassifier
from ..toolchain.probe import FlagProbeCache, FlagSupportProber
from ..toolchain.resolver import ExecutableResolver, ResolvedTool

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class CompileInvocation:
    """
    Everything needed to compile one source file.

    Attributes:
        tool: The compiler
        launcher: Argv prefix of the wrapper (ccache, ...) run before the compiler
        leading_args: Extra flags that came with the compiler override
        args: Assembled arguments, including the per-file tokens
        env: Environment overlay for the process
    """

    tool: ResolvedTool
    launcher: Tuple[str, ...] = ()
    leading_args: Tuple[str, ...] = ()
    args: Tuple[str, ...] = ()
    env: Dict[str, str] = field(default_factory=dict, compare=False)

    def command(self) -> List[str]:
        """Return the full argv."""
        argv: List[str] = list(self.launcher)
        argv += self.tool.command()
        argv += list(self.leading_args)
        argv += list(self.args)
        return argv


@dataclass(frozen=True)
class ArchiveInvocation:
    """Everything needed to pack objects into a static library."""

    tool: ResolvedTool
    leading_args: Tuple[str, ...] = ()
    args: Tuple[str, ...] = ()
    env: Dict[str, str] = field(default_factory=dict, compare=False)

    def command(self) -> List[str]:
        return self.tool.command() + list(self.leading_args) + list(self.args)


@dataclass
class Compiler:
    """
    The compiler selected for a build, ready to produce invocations.

    Attributes:
        tool: Resolved compiler
        family: Flag dialect of the compiler
        args: Assembled arguments shared by every source file
        wrapper: Wrapper from the override, if any
        override: Parsed compiler override, if one was configured
        env: Environment overlay for compiler processes
    """

    tool: ResolvedTool
    family: ToolFamily
    args: List[str] = field(default_factory=list)
    wrapper: Optional[ResolvedTool] = None
    override: Optional[ParsedOverride] = None
    env: Dict[str, str] = field(default_factory=dict)

    @property
    def path(self) -> Path:
        return self.tool.path

    @property
    def leading_args(self) -> List[str]:
        return self.override.extra_flags if self.override else []

    @property
    def launcher(self) -> List[str]:
        """Argv prefix that starts the wrapper, empty without one."""
        return self.override.wrapper_command() if self.override else []

    def cc_env(self) -> str:
        """
        Compiler string for build systems that read ``CC``.

        Non-empty only when a wrapper is in use: ``"<wrapper> <compiler path>
        <override flags>"``.
        """
        return self.override.cc_env() if self.override else ""

    def cflags_env(self) -> str:
        """Assembled arguments joined for build systems that read ``CFLAGS``."""
        return " ".join(self.args)


class Build:
    """
    One compilation setup.

    Caches and the process runner can be shared between Build instances;
    classification and flag probe results are then reused across builds.

    Example:
        >>> build = Build(BuildSettings(target="aarch64-unknown-linux-gnu"))
        >>> build.get_compiler().path
        PosixPath('/usr/bin/aarch64-linux-gnu-gcc-13')
    """

    def __init__(
        self,
        settings: Optional[BuildSettings] = None,
        runner: Optional[ProcessRunner] = None,
        tables: Optional[FlagTableLoader] = None,
        probe_cache: Optional[FlagProbeCache] = None,
        family_cache: Optional[SingleFlightCache] = None,
        registry: Optional[WrapperRegistry] = None,
        process_env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ):
        """
        Initialize build.

        Args:
            settings: Build configuration. Defaults to BuildSettings().
            runner: Process runner for every tool invocation
            tables: Flag table loader
            probe_cache: Shared flag probe cache
            family_cache: Shared classification memo
            registry: Known compiler wrappers
            process_env: Ambient environment. Defaults to os.environ.
            cwd: Working directory for tool resolution
        """
        self.settings = settings or BuildSettings()
        self.runner = runner or SubprocessRunner()
        self.tables = tables or FlagTableLoader()
        self.cwd = cwd

        host = self.settings.host or default_host_triple()
        self.host = TargetTriple.parse(host)
        self.target = TargetTriple.parse(self.settings.target or host)

        self.environment = BuildEnvironment(
            self.target,
            self.host,
            overrides=self.settings.env,
            process_env=process_env,
        )

        self.resolver = ExecutableResolver(self.runner)
        self.classifier = ToolFamilyClassifier(self.runner, family_cache)
        self.prober = FlagSupportProber(self.tables, probe_cache, self.runner)
        self.override_parser = CompilerOverrideParser(
            self.resolver, registry or KNOWN_WRAPPERS
        )
        self.assembler = ArgumentAssembler(self.tables)

        self._lock = threading.Lock()
        self._compiler: Optional[Compiler] = None

    # ------------------------------------------------------------------
    # Tool selection
    # ------------------------------------------------------------------

    def _resolve(self, name: str, note: str = "") -> ResolvedTool:
        return self.resolver.resolve(
            name,
            search_path=self.environment.search_path(),
            cwd=self.cwd,
            env=self.environment.tool_env() or None,
            note=note,
        )

    def _resolve_default(self, name: str, interpreter: Optional[str]) -> ResolvedTool:
        if interpreter:
            return self.resolver.resolve_script(
                interpreter,
                name,
                search_path=self.environment.search_path(),
                cwd=self.cwd,
                env=self.environment.tool_env() or None,
            )
        return self._resolve(name, note=f"default tool for {self.target}")

    def get_compiler(self) -> Compiler:
        """
        Select, resolve and classify the compiler and assemble its arguments.

        Returns:
            Compiler for this build

        Raises:
            OverrideParseFailed: If the compiler override names nothing runnable
            ToolNotFound: If the default compiler can't be resolved
            ClassificationFailed: If the compiler family can't be determined
            ProbeInfrastructureFailed: If a flag support probe can't run
        """
        with self._lock:
            if self._compiler is None:
                self._compiler = self._select_compiler()
            return self._compiler

    def _select_compiler(self) -> Compiler:
        settings = self.settings
        override_text = settings.compiler or self.environment.compiler_override(settings.cpp)

        override = None
        wrapper = None
        if override_text and override_text.strip():
            override = self.override_parser.resolve(
                override_text,
                search_path=self.environment.search_path(),
                cwd=self.cwd,
                env=self.environment.tool_env() or None,
            )
            tool = override.compiler
            wrapper = override.wrapper
        else:
            defaults = default_tools(self.target, self.host)
            tool = self._resolve_default(
                defaults.compiler(settings.cpp), defaults.interpreter
            )

        family = self.classifier.classify(tool)

        def supports(flag: str) -> bool:
            return self.prober.is_supported(tool, family, flag, cpp=settings.cpp)

        args = self.assembler.assemble(
            settings,
            family,
            self.target,
            self.host,
            env_flags=self.environment.raw_flags(settings.cpp),
            raw_flags_present=self.environment.has_raw_flags(),
            supports=supports,
        )

        compiler = Compiler(
            tool=tool,
            family=family,
            args=args,
            wrapper=wrapper,
            override=override,
            env=self.environment.tool_env(),
        )
        logger.info(
            f"Using {family.value} compiler {tool.path}"
            + (f" via {' '.join(compiler.launcher)}" if compiler.launcher else "")
        )
        return compiler

    def get_archiver(self) -> Tuple[ResolvedTool, List[str]]:
        """
        Resolve the archiver.

        Returns:
            Tuple of (archiver tool, leading arguments from the AR override)
        """
        override = self.settings.archiver or self.environment.archiver_override()
        if override and override.strip():
            tokens = override.split()
            return self._resolve(tokens[0], note=f"from override {override!r}"), tokens[1:]

        defaults = default_tools(self.target, self.host)
        return self._resolve_default(defaults.archiver, defaults.interpreter), []

    def archiver_family(self) -> ToolFamily:
        return ToolFamily.MSVC if self.target.is_msvc else ToolFamily.GNU

    def is_flag_supported(self, flag: str) -> bool:
        """
        Probe the build's compiler for ``flag``.

        Raises:
            ProbeInfrastructureFailed: If the trial compile can't be started
        """
        compiler = self.get_compiler()
        return self.prober.is_supported(
            compiler.tool, compiler.family, flag, cpp=self.settings.cpp
        )

    # ------------------------------------------------------------------
    # Invocations
    # ------------------------------------------------------------------

    def compile_invocation(self, source: PathLike, obj: PathLike) -> CompileInvocation:
        """Build the invocation compiling ``source`` into ``obj``."""
        compiler = self.get_compiler()
        args = self.assembler.compile_args(compiler.args, compiler.family, source, obj)
        return CompileInvocation(
            tool=compiler.tool,
            launcher=tuple(compiler.launcher),
            leading_args=tuple(compiler.leading_args),
            args=tuple(args),
            env=dict(compiler.env),
        )

    def compile_invocations(
        self, sources: Sequence[PathLike], out_dir: PathLike
    ) -> List[CompileInvocation]:
        """
        Build one invocation per source, placing objects in ``out_dir``.

        Objects are named after the source file with ``.o`` (``.obj`` for
        MSVC) appended to the stem.
        """
        compiler = self.get_compiler()
        suffix = ".obj" if compiler.family is ToolFamily.MSVC else ".o"
        return [
            self.compile_invocation(source, Path(out_dir) / f"{Path(source).stem}{suffix}")
            for source in sources
        ]

    def archive_invocation(
        self, library: PathLike, objects: Sequence[PathLike]
    ) -> ArchiveInvocation:
        """Build the invocation packing ``objects`` into ``library``."""
        tool, leading = self.get_archiver()
        args = self.assembler.archive_args(self.archiver_family(), library, objects)
        return ArchiveInvocation(
            tool=tool,
            leading_args=tuple(leading),
            args=tuple(args),
            env=self.environment.tool_env(),
        )


__all__ = [
    "Build",
    "Compiler",
    "CompileInvocation",
    "ArchiveInvocation",
]
