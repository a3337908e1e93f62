"""
Archive command implementation.

Prints the command packing object files into a static library.
"""

import logging
import shlex

from cctoolkit.build.builder import Build
from cctoolkit.cli.utils import load_build_settings

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the archive command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    build = Build(load_build_settings(args))
    invocation = build.archive_invocation(args.library, args.objects)
    print(shlex.join(invocation.command()))
    return 0
