"""
Shared CLI utilities.

Common helpers for command implementations: loading build settings from the
configuration file and command-line options, and consistent output.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from cctoolkit.config.parser import BuildSettings, parse_config

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "cctoolkit.yaml"


# ============================================================================
# Configuration Loading
# ============================================================================


def find_config(config_file: Optional[Path] = None) -> Optional[Path]:
    """
    Locate the configuration file.

    Args:
        config_file: Explicit path from ``--config``

    Returns:
        The explicit path, ``./cctoolkit.yaml`` when it exists, else None
    """
    if config_file is not None:
        return config_file
    default = Path.cwd() / DEFAULT_CONFIG_NAME
    return default if default.exists() else None


def load_build_settings(args) -> BuildSettings:
    """
    Build settings for a command: config file first, then CLI options.

    Args:
        args: Parsed arguments. ``config``, ``target``, ``host`` and ``cpp``
            are honoured when present.

    Returns:
        BuildSettings

    Raises:
        ConfigError: If the configuration file is missing or invalid
    """
    config_file = find_config(getattr(args, "config", None))
    if config_file is not None:
        logger.debug(f"Loading configuration from {config_file}")
        settings = parse_config(config_file).build
    else:
        settings = BuildSettings()

    return settings.with_overrides(
        target=getattr(args, "target", None),
        host=getattr(args, "host", None),
        cpp=True if getattr(args, "cpp", False) else None,
    )


# ============================================================================
# User Interface / Output Formatting
# ============================================================================


def format_details(details: Dict[str, Any]) -> str:
    """
    Format key-value pairs as aligned lines.

    Example:
        >>> print(format_details({"path": "/usr/bin/cc", "family": "gnu"}))
        path:   /usr/bin/cc
        family: gnu
    """
    if not details:
        return ""
    width = max(len(key) for key in details) + 1
    return "\n".join(f"{key + ':':<{width}} {value}" for key, value in details.items())


__all__ = [
    "DEFAULT_CONFIG_NAME",
    "find_config",
    "load_build_settings",
    "format_details",
]
