"""Configuration loading for diff-canvas."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

CONFIG_FILENAMES = (".diff-canvas.toml", "diff-canvas.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("diff_canvas", "diff-canvas")
OUTPUT_FORMATS = {"html", "json", "human"}

DEFAULT_IMPORT_PREFIXES = ("import ", "import{", "} from ")
DEFAULT_EMPTY_MESSAGE = "No diff data"


@dataclass(slots=True)
class FilterConfig:
    """Noise filter switches."""

    drop_imports: bool = True
    collapse_whitespace: bool = True
    import_prefixes: list[str] = field(default_factory=lambda: list(DEFAULT_IMPORT_PREFIXES))

    def to_dict(self) -> dict[str, Any]:
        return {
            "drop_imports": self.drop_imports,
            "collapse_whitespace": self.collapse_whitespace,
            "import_prefixes": list(self.import_prefixes),
        }


@dataclass(slots=True)
class MoveConfig:
    """Moved-block detection thresholds."""

    enabled: bool = True
    window: int = 40
    min_block_size: int = 3
    min_match_ratio: float = 0.7

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "window": self.window,
            "min_block_size": self.min_block_size,
            "min_match_ratio": self.min_match_ratio,
        }


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "html"
    empty_message: str = DEFAULT_EMPTY_MESSAGE
    filters: FilterConfig = field(default_factory=FilterConfig)
    moves: MoveConfig = field(default_factory=MoveConfig)
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "empty_message": self.empty_message,
            "filters": self.filters.to_dict(),
            "moves": self.moves.to_dict(),
            "source": self.source,
        }


def load_app_config(repo: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or repository-local files with precedence."""
    repo = repo.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (repo / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = repo / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = repo / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'format = "html"',
            'empty_message = "No diff data"',
            "",
            "[filters]",
            "drop_imports = true",
            "collapse_whitespace = true",
            'import_prefixes = ["import ", "import{", "} from "]',
            "",
            "[moves]",
            "enabled = true",
            "window = 40",
            "min_block_size = 3",
            "min_match_ratio = 0.7",
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    filters_mapping = _as_table(mapping.get("filters"), "filters")
    moves_mapping = _as_table(mapping.get("moves"), "moves")

    return AppConfig(
        format=_as_choice(mapping.get("format", "html"), OUTPUT_FORMATS, "format"),
        empty_message=_as_str(
            mapping.get("empty_message", DEFAULT_EMPTY_MESSAGE), "empty_message"
        ),
        filters=_parse_filter_config(filters_mapping),
        moves=_parse_move_config(moves_mapping),
        source=source,
    )


def _parse_filter_config(value: dict[str, Any]) -> FilterConfig:
    prefixes = value.get("import_prefixes")
    return FilterConfig(
        drop_imports=_as_bool(value.get("drop_imports", True), "filters.drop_imports"),
        collapse_whitespace=_as_bool(
            value.get("collapse_whitespace", True), "filters.collapse_whitespace"
        ),
        import_prefixes=(
            _as_str_list(prefixes) if prefixes is not None else list(DEFAULT_IMPORT_PREFIXES)
        ),
    )


def _parse_move_config(value: dict[str, Any]) -> MoveConfig:
    window = _as_int(value.get("window", 40), "moves.window")
    if window <= 0:
        raise ValueError("moves.window must be > 0")
    min_block_size = _as_int(value.get("min_block_size", 3), "moves.min_block_size")
    if min_block_size <= 0:
        raise ValueError("moves.min_block_size must be > 0")
    ratio = _as_float(value.get("min_match_ratio", 0.7), "moves.min_match_ratio")
    if not 0.0 <= ratio <= 1.0:
        raise ValueError("moves.min_match_ratio must be between 0 and 1")
    return MoveConfig(
        enabled=_as_bool(value.get("enabled", True), "moves.enabled"),
        window=window,
        min_block_size=min_block_size,
        min_match_ratio=ratio,
    )


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be a table/object")
    return value


def _as_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        raise ValueError("Expected a list of strings")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError("Expected a list of strings")
        items.append(item)
    return items


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {choices}")
    return value


def _as_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{field_name} must be an integer")
    return raw


def _as_bool(raw: Any, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ValueError(f"{field_name} must be a boolean")
    return raw


def _as_float(raw: Any, field_name: str) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValueError(f"{field_name} must be a number")
    return float(raw)
