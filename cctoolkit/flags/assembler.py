"""
Compiler argument assembly.

Combines BuildSettings, the target triple and a family flag table into the
ordered argument list for one compilation. The order is fixed:

 1. optimization            8. include directories
 2. debug info              9. base warnings
 3. family defaults / PIC  10. user flags
 4. target selection       11. flags that passed a support probe
 5. linkage                12. defines
 6. C++ standard library   13. warnings as errors
 7. CFLAGS / CXXFLAGS      14. per-file output and source

so that user flags always come after the warnings they may narrow, and the
same inputs always produce the same list.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from ..config.parser import BuildSettings
from ..cross.targets import TargetTriple
from ..toolchain.family import ToolFamily
from .tables import FlagTable, FlagTableLoader

logger = logging.getLogger(__name__)

SupportCheck = Callable[[str], bool]


class ArgumentAssembler:
    """
    Build compile and archive argument lists from flag tables.

    Example:
        >>> assembler = ArgumentAssembler()
        >>> settings = BuildSettings(opt_level="2", warnings=False)
        >>> triple = TargetTriple.parse("x86_64-unknown-linux-gnu")
        >>> assembler.assemble(settings, ToolFamily.GNU, triple, triple)[:2]
        ['-O2', '-ffunction-sections']
    """

    def __init__(self, tables: Optional[FlagTableLoader] = None):
        self.tables = tables or FlagTableLoader()

    def table(self, family: ToolFamily) -> FlagTable:
        return self.tables.load(family)

    def assemble(
        self,
        settings: BuildSettings,
        family: ToolFamily,
        target: TargetTriple,
        host: TargetTriple,
        env_flags: Sequence[str] = (),
        raw_flags_present: bool = False,
        supports: Optional[SupportCheck] = None,
    ) -> List[str]:
        """
        Assemble the arguments shared by every source of a compilation.

        Args:
            settings: Build configuration
            family: Family of the compiler that will run
            target: Triple being compiled for
            host: Triple of the build machine
            env_flags: Tokens from CFLAGS / CXXFLAGS
            raw_flags_present: True when CFLAGS or CXXFLAGS is set; base
                warnings are left out in that case
            supports: Flag support check for ``flags_if_supported``. When
                omitted no conditional flag is emitted.

        Returns:
            Ordered argument list, without per-file tokens

        Raises:
            ProbeInfrastructureFailed: Propagated from ``supports``
        """
        table = self.table(family)
        args: List[str] = []

        args += table.optimization(settings.opt_level)
        if settings.debug:
            args += table.debug()

        args += table.defaults()
        pic = settings.pic if settings.pic is not None else target.pic_default
        if pic:
            args += table.pic()
            if settings.use_plt is False:
                args += table.no_plt()
        args += table.runtime(bool(settings.static_crt))

        args += table.target_flags(target, host)
        args += table.linkage(static=settings.static_flag, shared=settings.shared_flag)

        if settings.cpp and settings.cpp_stdlib:
            args += table.stdlib(settings.cpp_stdlib)

        args += list(env_flags)

        for directory in settings.includes:
            args += table.include(directory)

        if not raw_flags_present:
            args += table.warnings(
                base=settings.warnings is not False,
                extra=settings.extra_warnings is not False,
            )

        args += list(settings.flags)

        for flag in settings.flags_if_supported:
            if supports is not None and supports(flag):
                args.append(flag)
            else:
                logger.warning(f"Skipping unsupported flag {flag}")

        for name, value in settings.defines:
            args += table.define(name, value)

        if settings.warnings_into_errors:
            args += table.warnings_into_errors()

        return args

    def compile_args(
        self,
        args: Sequence[str],
        family: ToolFamily,
        source: Union[str, Path],
        obj: Union[str, Path],
    ) -> List[str]:
        """Append the per-file output and source tokens to ``args``."""
        return list(args) + self.table(family).per_file(source, obj)

    def archive_args(
        self,
        family: ToolFamily,
        library: Union[str, Path],
        objects: Sequence[Union[str, Path]],
    ) -> List[str]:
        """
        Arguments for the archiver.

        Example:
            >>> assembler.archive_args(ToolFamily.GNU, "libfoo.a", ["a.o", "b.o"])
            ['crs', 'libfoo.a', 'a.o', 'b.o']
        """
        return self.table(family).archive(library, objects)


__all__ = [
    "ArgumentAssembler",
    "SupportCheck",
]
