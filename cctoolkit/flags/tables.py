"""
YAML-based flag tables for each tool family.

Every ToolFamily has a YAML file under ``cctoolkit/data/families`` that
spells out its command-line vocabulary: optimization switches, debug info,
target selection, include and define syntax, the per-file compile tokens and
the stderr phrases that mean "this flag is not understood". Tables can
``extends`` another table and list only their differences.

Usage:
    from cctoolkit.flags.tables import FlagTableLoader
    from cctoolkit.toolchain.family import ToolFamily

    loader = FlagTableLoader()
    clang = loader.load(ToolFamily.CLANG)
    clang.optimization("z")          # ['-Oz']
    clang.include("src")             # ['-I', 'src']
"""

import logging
import re
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import yaml

from ..config.parser import OPT_LEVELS
from ..core.exceptions import FlagTableError
from ..cross.targets import TargetTriple
from ..toolchain.family import ToolFamily

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data" / "families"

REQUIRED_FIELDS = (
    "name",
    "family",
    "optimization",
    "debug",
    "defaults",
    "pic",
    "no_plt",
    "runtime",
    "target",
    "linkage",
    "include",
    "warnings",
    "define",
    "warnings_into_errors",
    "per_file",
    "archive",
    "unsupported_flag_patterns",
)

TARGET_STYLES = ("word_size", "triple", "none")


class FlagTableLoader:
    """
    Load family flag tables from YAML files.

    This loader supports:
    - Composition (extends) with circular dependency detection
    - Validation of required fields at load time
    - Caching of parsed tables

    Example:
        >>> loader = FlagTableLoader()
        >>> gnu = loader.load(ToolFamily.GNU)
        >>> gnu.debug()
        ['-g']
    """

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the loader.

        Args:
            data_dir: Directory containing ``<family>.yaml`` files.
                Defaults to the tables shipped with cctoolkit.
        """
        self.data_dir = Path(data_dir) if data_dir else DEFAULT_DATA_DIR
        self._lock = threading.Lock()
        self._yaml_cache: Dict[str, Dict[str, Any]] = {}
        self._table_cache: Dict[str, "FlagTable"] = {}

    def load(self, family: Union[ToolFamily, str]) -> "FlagTable":
        """
        Load the flag table for a family.

        Args:
            family: ToolFamily or table name (e.g., 'gnu')

        Returns:
            Validated FlagTable

        Raises:
            FlagTableError: If the table is missing, malformed, extends
                itself or lacks a required field
        """
        name = family.value if isinstance(family, ToolFamily) else str(family)

        with self._lock:
            if name in self._table_cache:
                return self._table_cache[name]

            data = self._load_yaml_file(name)
            if "extends" in data:
                data = self._resolve_extends(data, [name])

            table = FlagTable(data, name)
            self._table_cache[name] = table
            logger.debug(f"Loaded flag table {name} from {self.data_dir}")
            return table

    def load_all(self) -> Dict[ToolFamily, "FlagTable"]:
        """Load and validate the table of every ToolFamily."""
        return {family: self.load(family) for family in ToolFamily}

    def list_available(self) -> List[str]:
        """List table names (file stems) in the data directory."""
        if not self.data_dir.exists():
            return []
        return sorted(f.stem for f in self.data_dir.glob("*.yaml"))

    def _load_yaml_file(self, name: str) -> Dict[str, Any]:
        if name in self._yaml_cache:
            return dict(self._yaml_cache[name])

        yaml_file = self.data_dir / f"{name}.yaml"
        if not yaml_file.exists():
            raise FlagTableError(
                f"Flag table not found: {yaml_file}\n"
                f"Available tables: {', '.join(self.list_available())}"
            )

        try:
            with open(yaml_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise FlagTableError(f"Invalid YAML syntax in {yaml_file}: {e}") from e
        except OSError as e:
            raise FlagTableError(f"Failed to read {yaml_file}: {e}") from e

        if not isinstance(data, dict):
            raise FlagTableError(
                f"Flag table must be a mapping, got {type(data).__name__}: {yaml_file}"
            )

        self._yaml_cache[name] = dict(data)
        return data

    def _resolve_extends(
        self, data: Dict[str, Any], chain: List[str]
    ) -> Dict[str, Any]:
        if "extends" not in data:
            return data

        base_name = str(data["extends"])
        if base_name.endswith(".yaml"):
            base_name = base_name[:-5]

        if base_name in chain:
            raise FlagTableError(
                f"Circular extends detected: {' -> '.join(chain)} -> {base_name}"
            )

        base = self._load_yaml_file(base_name)
        base = self._resolve_extends(base, chain + [base_name])

        merged = merge_tables(base, data)
        merged.pop("extends", None)
        return merged


def merge_tables(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two tables, with ``override`` taking precedence.

    Merge semantics:
    - Nested dictionaries: Deep merge keys
    - Lists and primitives: Override value replaces base value

    Example:
        >>> merge_tables({'optimization': {'s': ['-Os'], 'z': ['-Os']}},
        ...              {'optimization': {'z': ['-Oz']}})
        {'optimization': {'s': ['-Os'], 'z': ['-Oz']}}
    """
    result = dict(base)
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = merge_tables(base_value, value)
        else:
            result[key] = value
    return result


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]


def _render(template: Sequence[str], **values: str) -> List[str]:
    return [token.format(**values) for token in template]


class FlagTable:
    """
    One family's command-line vocabulary.

    Accessors return fresh lists, so callers may extend them freely.
    """

    def __init__(self, data: Dict[str, Any], name: str):
        self.data = data
        self.name = name
        self._validate()

        self.family = ToolFamily.from_name(str(data["family"]))
        self._unsupported = [
            re.compile(re.escape(str(pattern)), re.IGNORECASE)
            for pattern in data["unsupported_flag_patterns"]
        ]

    def _validate(self) -> None:
        missing = [field for field in REQUIRED_FIELDS if field not in self.data]
        if missing:
            raise FlagTableError(
                f"Flag table '{self.name}' is missing required fields: "
                f"{', '.join(missing)}"
            )

        optimization = self.data["optimization"]
        if not isinstance(optimization, dict):
            raise FlagTableError(f"Flag table '{self.name}': optimization must be a mapping")
        levels = {str(level) for level in optimization}
        missing_levels = [level for level in OPT_LEVELS if level not in levels]
        if missing_levels:
            raise FlagTableError(
                f"Flag table '{self.name}' has no optimization flags for levels: "
                f"{', '.join(missing_levels)}"
            )

        style = (self.data["target"] or {}).get("style")
        if style not in TARGET_STYLES:
            raise FlagTableError(
                f"Flag table '{self.name}': unknown target style {style!r}. "
                f"Expected one of: {', '.join(TARGET_STYLES)}"
            )

        for section in ("per_file", "runtime", "linkage", "warnings"):
            if not isinstance(self.data[section], dict):
                raise FlagTableError(
                    f"Flag table '{self.name}': {section} must be a mapping"
                )

        try:
            ToolFamily.from_name(str(self.data["family"]))
        except ValueError as e:
            raise FlagTableError(f"Flag table '{self.name}': {e}") from e

    # ------------------------------------------------------------------
    # Compilation flags
    # ------------------------------------------------------------------

    def optimization(self, level: str) -> List[str]:
        """Flags for optimization ``level`` (one of 0, 1, 2, 3, s, z)."""
        for key, flags in self.data["optimization"].items():
            if str(key) == str(level):
                return _as_list(flags)
        return []

    def debug(self) -> List[str]:
        return _as_list(self.data["debug"])

    def defaults(self) -> List[str]:
        return _as_list(self.data["defaults"])

    def pic(self) -> List[str]:
        return _as_list(self.data["pic"])

    def no_plt(self) -> List[str]:
        return _as_list(self.data["no_plt"])

    def runtime(self, static_crt: bool) -> List[str]:
        """C runtime selection switch (MSVC only)."""
        return _as_list(self.data["runtime"].get("static" if static_crt else "dynamic"))

    def target_flags(self, target: TargetTriple, host: TargetTriple) -> List[str]:
        """
        Flags selecting the target architecture.

        GNU-style tables map the arch (and some environments) to word size
        and ARM flags; triple-style tables pass ``--target`` only when
        cross-compiling.
        """
        section = self.data["target"] or {}
        style = section.get("style")

        if style == "triple":
            if target.raw == host.raw:
                return []
            return [str(section["triple_flag"]).format(triple=target.raw)]

        if style != "word_size":
            return []

        env_flags = section.get("env_flags") or {}
        if target.env in env_flags:
            flags = _as_list(env_flags[target.env])
        else:
            flags = _as_list((section.get("arch_flags") or {}).get(target.arch))

        if target.is_arm:
            flags += _as_list((section.get("float_abi") or {}).get(target.env))
        return flags

    def linkage(self, static: bool = False, shared: bool = False) -> List[str]:
        flags = []
        if static:
            flags += _as_list(self.data["linkage"].get("static"))
        if shared:
            flags += _as_list(self.data["linkage"].get("shared"))
        return flags

    def stdlib(self, name: str) -> List[str]:
        """C++ standard library selection, empty when the family has none."""
        template = self.data.get("stdlib")
        if not template:
            return []
        return [str(template).format(name=name)]

    def include(self, directory: Union[str, Path]) -> List[str]:
        return _render(_as_list(self.data["include"]), dir=str(directory))

    def warnings(self, base: bool = True, extra: bool = True) -> List[str]:
        flags = []
        if base:
            flags += _as_list(self.data["warnings"].get("base"))
        if extra:
            flags += _as_list(self.data["warnings"].get("extra"))
        return flags

    def define(self, name: str, value: Optional[str] = None) -> List[str]:
        text = name if value is None else f"{name}={value}"
        return [str(self.data["define"]).format(define=text)]

    def warnings_into_errors(self) -> List[str]:
        return _as_list(self.data["warnings_into_errors"])

    def per_file(self, source: Union[str, Path], obj: Union[str, Path]) -> List[str]:
        """Tokens naming the object output and the source to compile."""
        per_file = self.data["per_file"]
        return _render(
            _as_list(per_file.get("object")), object=str(obj)
        ) + _render(_as_list(per_file.get("compile")), source=str(source))

    # ------------------------------------------------------------------
    # Archiving and probing
    # ------------------------------------------------------------------

    def archive(self, library: Union[str, Path], objects: Sequence[Union[str, Path]]) -> List[str]:
        return _render(_as_list(self.data["archive"]), library=str(library)) + [
            str(obj) for obj in objects
        ]

    def unsupported_flag_patterns(self) -> List[str]:
        return _as_list(self.data["unsupported_flag_patterns"])

    def rejects_flag(self, stderr: str) -> bool:
        """True when ``stderr`` contains one of the family's rejection phrases."""
        return any(pattern.search(stderr) for pattern in self._unsupported)

    def __repr__(self) -> str:
        return f"FlagTable(name={self.name!r}, family={self.family.value!r})"


__all__ = [
    "FlagTable",
    "FlagTableLoader",
    "merge_tables",
    "OPT_LEVELS",
    "DEFAULT_DATA_DIR",
]
