"""
Probe command implementation.

Checks flag support of the configured compiler.
"""

import logging

from cctoolkit.build.builder import Build
from cctoolkit.cli.utils import load_build_settings

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the probe command.

    Prints one line per flag. Exits with 0 when every flag is supported and
    2 when at least one is not.
    """
    build = Build(load_build_settings(args))
    compiler = build.get_compiler()
    logger.debug(f"Probing {len(args.flags)} flag(s) with {compiler.path}")

    all_supported = True
    for flag in args.flags:
        supported = build.is_flag_supported(flag)
        all_supported = all_supported and supported
        print(f"{flag}: {'supported' if supported else 'unsupported'}")

    return 0 if all_supported else 2
