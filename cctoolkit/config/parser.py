"""YAML configuration parser for cctoolkit.

This module provides parsing and validation for cctoolkit.yaml configuration
files. The ``build`` section describes one compilation setup (target,
optimization, warnings, defines, ...) and is parsed into BuildSettings.

Example cctoolkit.yaml::

    version: 1
    project: zlib
    build:
      target: aarch64-unknown-linux-gnu
      opt_level: 2
      debug: true
      cpp: false
      includes: [include, src]
      defines:
        - NDEBUG
        - Z_PREFIX=1
      flags_if_supported: [-fno-plt, -Wno-unused-parameter]
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..core.exceptions import ConfigError
from ..cross.targets import TargetTriple

OPT_LEVELS = ("0", "1", "2", "3", "s", "z")

Define = Tuple[str, Optional[str]]


@dataclass
class BuildSettings:
    """
    Declarative configuration for one compilation setup.

    Tri-state fields (``Optional[bool]``) are None when not configured; the
    argument assembler applies the target-dependent default in that case.
    """

    target: Optional[str] = None  # defaults to host
    host: Optional[str] = None  # defaults to the running machine
    opt_level: str = "0"  # '0', '1', '2', '3', 's', 'z'
    debug: bool = False
    warnings: Optional[bool] = None  # default on
    extra_warnings: Optional[bool] = None  # default on
    warnings_into_errors: bool = False
    pic: Optional[bool] = None  # default on except windows / bare metal
    use_plt: Optional[bool] = None  # default on
    static_flag: bool = False
    shared_flag: bool = False
    static_crt: Optional[bool] = None  # MSVC runtime; default dynamic (/MD)
    cpp: bool = False
    cpp_stdlib: Optional[str] = None  # e.g. 'c++' -> -stdlib=libc++
    defines: List[Define] = field(default_factory=list)
    includes: List[str] = field(default_factory=list)
    flags: List[str] = field(default_factory=list)
    flags_if_supported: List[str] = field(default_factory=list)
    compiler: Optional[str] = None  # override string, same syntax as CC
    archiver: Optional[str] = None
    env: Dict[str, str] = field(default_factory=dict)  # wins over os.environ

    def with_overrides(self, **changes: Any) -> "BuildSettings":
        """Return a copy with the given fields replaced (None values skipped)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


@dataclass
class CCToolkitConfig:
    """Complete cctoolkit configuration."""

    version: int
    project: Optional[str] = None
    build: BuildSettings = field(default_factory=BuildSettings)


def parse_config(config_path: Path) -> CCToolkitConfig:
    """
    Parse cctoolkit.yaml configuration file.

    Args:
        config_path: Path to cctoolkit.yaml

    Returns:
        Parsed and validated configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if data is None:
        raise ConfigError("Configuration file is empty")

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    return _parse_and_validate(data)


def _parse_and_validate(data: dict) -> CCToolkitConfig:
    """Parse and validate configuration data."""
    if "version" not in data:
        raise ConfigError("Missing required field: version")

    if data["version"] != 1:
        raise ConfigError(f"Unsupported version: {data['version']} (expected 1)")

    build_data = data.get("build") or {}
    if not isinstance(build_data, dict):
        raise ConfigError("build must be a mapping")

    return CCToolkitConfig(
        version=data["version"],
        project=data.get("project"),
        build=parse_build_settings(build_data),
    )


_BOOL_FIELDS = (
    "debug",
    "warnings_into_errors",
    "static_flag",
    "shared_flag",
    "cpp",
)
_OPTIONAL_BOOL_FIELDS = (
    "warnings",
    "extra_warnings",
    "pic",
    "use_plt",
    "static_crt",
)
_LIST_FIELDS = ("includes", "flags", "flags_if_supported")
_STRING_FIELDS = ("cpp_stdlib", "compiler", "archiver")


def parse_build_settings(data: dict) -> BuildSettings:
    """
    Parse the ``build`` section into BuildSettings.

    Raises:
        ConfigError: If a field has the wrong type or an invalid value
    """
    known = set(BuildSettings.__dataclass_fields__)
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown build settings: {', '.join(unknown)}")

    values: Dict[str, Any] = {}

    for name in ("target", "host"):
        if data.get(name) is not None:
            values[name] = validate_triple(data[name], name)

    if "opt_level" in data:
        values["opt_level"] = validate_opt_level(data["opt_level"])

    for name in _BOOL_FIELDS:
        if name in data:
            values[name] = _parse_bool(data[name], name)

    for name in _OPTIONAL_BOOL_FIELDS:
        if data.get(name) is not None:
            values[name] = _parse_bool(data[name], name)

    for name in _LIST_FIELDS:
        if name in data:
            values[name] = _parse_string_list(data[name], name)

    for name in _STRING_FIELDS:
        if data.get(name) is not None:
            if not isinstance(data[name], str):
                raise ConfigError(f"{name} must be a string")
            values[name] = data[name]

    if "defines" in data:
        values["defines"] = parse_defines(data["defines"])

    if "env" in data:
        env = data["env"] or {}
        if not isinstance(env, dict):
            raise ConfigError("env must be a dictionary")
        values["env"] = {str(k): str(v) for k, v in env.items()}

    return BuildSettings(**values)


def validate_triple(value: Any, name: str = "target") -> str:
    """Check that ``value`` is a parseable target triple."""
    if not isinstance(value, str):
        raise ConfigError(f"{name} must be a string")
    try:
        return TargetTriple.parse(value).raw
    except ValueError as e:
        raise ConfigError(f"Invalid {name}: {e}")


def validate_opt_level(value: Any) -> str:
    """
    Normalize an optimization level to its string form.

    Example:
        >>> validate_opt_level(2)
        '2'
    """
    if isinstance(value, bool):
        raise ConfigError(f"Invalid opt_level: {value!r} (expected one of {list(OPT_LEVELS)})")
    level = str(value).strip()
    if level not in OPT_LEVELS:
        raise ConfigError(f"Invalid opt_level: {value!r} (expected one of {list(OPT_LEVELS)})")
    return level


def parse_defines(data: Any) -> List[Define]:
    """
    Parse defines given as a list or a mapping.

    ``["FOO=bar", "BAR"]`` and ``{FOO: bar, BAR: null}`` both produce
    ``[("FOO", "bar"), ("BAR", None)]``.
    """
    defines: List[Define] = []

    if isinstance(data, dict):
        for name, value in data.items():
            defines.append((str(name), None if value is None else str(value)))
        return defines

    if not isinstance(data, list):
        raise ConfigError("defines must be a list or a dictionary")

    for entry in data:
        if isinstance(entry, dict):
            defines.extend(parse_defines(entry))
        elif isinstance(entry, str):
            name, sep, value = entry.partition("=")
            if not name:
                raise ConfigError(f"Invalid define: {entry!r}")
            defines.append((name, value if sep else None))
        else:
            raise ConfigError(f"Invalid define: {entry!r}")

    return defines


def _parse_bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{name} must be true or false, got {value!r}")
    return value


def _parse_string_list(value: Any, name: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{name} must be a list of strings")
    return list(value)


__all__ = [
    "BuildSettings",
    "CCToolkitConfig",
    "OPT_LEVELS",
    "parse_config",
    "parse_build_settings",
    "parse_defines",
    "validate_opt_level",
    "validate_triple",
]
