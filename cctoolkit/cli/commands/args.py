"""
Args command implementation.

Prints the full compile command for one source file.
"""

import logging
import shlex

from cctoolkit.build.builder import Build
from cctoolkit.cli.utils import load_build_settings
from cctoolkit.config.parser import parse_defines
from cctoolkit.toolchain.family import ToolFamily

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the args command.

    Command-line values are added to those from the configuration file:
    ``-D``, ``-I`` and ``--flag`` entries come after the configured ones.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    settings = load_build_settings(args)
    settings = settings.with_overrides(
        opt_level=args.opt_level,
        debug=args.debug,
        defines=settings.defines + parse_defines(args.defines) if args.defines else None,
        includes=settings.includes + args.includes if args.includes else None,
        flags=settings.flags + args.flags if args.flags else None,
        flags_if_supported=(
            settings.flags_if_supported + args.flags_if_supported
            if args.flags_if_supported
            else None
        ),
    )

    build = Build(settings)
    obj = args.object
    if obj is None:
        suffix = ".obj" if build.get_compiler().family is ToolFamily.MSVC else ".o"
        obj = args.source.with_suffix(suffix)

    invocation = build.compile_invocation(args.source, obj)
    print(shlex.join(invocation.command()))
    return 0
