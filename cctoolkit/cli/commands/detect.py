"""
Detect command implementation.

Resolves the compiler the current configuration would use, classifies it
and reports the wrapper and environment strings.
"""

import logging

from cctoolkit.build.builder import Build
from cctoolkit.caching.detection import WrapperDetector
from cctoolkit.cli.utils import format_details, load_build_settings

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the detect command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    settings = load_build_settings(args)
    build = Build(settings)
    compiler = build.get_compiler()

    details = {
        "target": build.target,
        "host": build.host,
        "requested": compiler.tool.requested,
        "path": compiler.path,
        "family": compiler.family.value,
        "wrapper": " ".join(compiler.launcher) or "none",
        "cc_env": compiler.cc_env() or '""',
        "cflags_env": compiler.cflags_env(),
    }

    detector = WrapperDetector(runner=build.runner)
    if compiler.wrapper:
        version = detector.get_version(compiler.wrapper.path)
        details["wrapper version"] = version or "unknown"

    available = detector.detect_available(build.environment.search_path())
    details["wrappers on PATH"] = ", ".join(available) if available else "none"

    print(format_details(details))
    return 0
