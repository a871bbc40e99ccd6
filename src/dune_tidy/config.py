"""Configuration helpers for loading JSON/YAML config files."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .exceptions import ConfigurationError

REPO_ROOT = Path(__file__).resolve().parents[2]
CONFIG_DIR = REPO_ROOT / "config"
DEFAULT_CONFIG_NAME = "tidy_config.json"

DEFAULT_PRODUCTS_DIR = "/cvmfs/fermilab.opensciencegrid.org/products/larsoft"


@dataclass(frozen=True)
class TidyConfig:
    """Settings for one dune-tidy invocation."""

    products_dir: Path = Path(DEFAULT_PRODUCTS_DIR)
    toolchain_product: str = "clang"
    clang_version: Optional[str] = None
    analyzer: str = "clang-tidy"
    header_filter: str = ".*"
    source_extensions: Tuple[str, ...] = (".cc",)
    header_extensions: Tuple[str, ...] = (".hh",)
    jobs: int = 1
    timeout_seconds: Optional[float] = None
    fail_fast: bool = False
    extra_required_checks: Tuple[str, ...] = ()
    extra_optional_checks: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = field(default=(), compare=False)

    def with_overrides(self, **overrides: Any) -> "TidyConfig":
        """Return a copy with every non-None override applied."""
        values = {key: value for key, value in overrides.items() if value is not None}
        if not values:
            return self
        return _build_config(values, base=self)


def load_json_or_yaml(file_path: Path) -> Any:
    """Load data from a JSON or YAML file, picking the parser by extension."""
    content = file_path.read_text(encoding="utf-8")

    if file_path.suffix.lower() in {".yml", ".yaml"}:
        return yaml.safe_load(content)
    return json.loads(content)


def load_json_config(file_name: str) -> Any:
    """Load a config file; relative names resolve against the repository config/ dir."""

    file_path = Path(file_name)
    if not file_path.is_absolute() and not file_path.exists():
        file_path = CONFIG_DIR / file_name

    if not file_path.exists():
        raise FileNotFoundError(f"Config file '{file_name}' does not exist at {file_path}")

    try:
        return load_json_or_yaml(file_path)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Failed to read config file {file_path}: {exc}") from exc
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Failed to parse config file {file_path}: {exc}") from exc


def auto_load_json_config(file_name: str, tag: str = "default") -> Dict[str, Any]:
    """
    Using tag strategy to load multiple configs from a single file.
    Return a {} item from [{},{}] in the config file.
    """
    config_data = load_json_config(file_name)

    if isinstance(config_data, list):
        if not config_data:
            raise ConfigurationError(f"Config file '{file_name}' is an empty list.")

        for config in config_data:
            if isinstance(config, dict) and tag in config.get("tags", []):
                return config

        first = config_data[0]
        if not isinstance(first, dict):
            raise ConfigurationError(f"Config file '{file_name}' must contain mappings.")
        return first

    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        raise ConfigurationError(f"Config file '{file_name}' must contain a mapping or a list of mappings.")
    return config_data


def load_tidy_config(config_name: Optional[str] = None, tag: str = "default") -> TidyConfig:
    """Build a TidyConfig from a config file.

    Without an explicit name the shipped tidy_config.json is used, and the
    built-in defaults apply when it is absent.
    """
    if config_name is None:
        if not (CONFIG_DIR / DEFAULT_CONFIG_NAME).exists():
            return TidyConfig()
        config_name = DEFAULT_CONFIG_NAME

    raw = auto_load_json_config(config_name, tag=tag)
    return _build_config(raw)


_PATH_KEYS = {"products_dir"}
_STR_KEYS = {"toolchain_product", "analyzer", "header_filter"}
_OPTIONAL_STR_KEYS = {"clang_version"}
_TUPLE_KEYS = {
    "source_extensions",
    "header_extensions",
    "extra_required_checks",
    "extra_optional_checks",
    "tags",
}


def _build_config(raw: Dict[str, Any], base: TidyConfig | None = None) -> TidyConfig:
    known = {f.name for f in fields(TidyConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(f"Unknown config keys: {', '.join(unknown)}")

    values: Dict[str, Any] = {}
    for key, value in raw.items():
        if key in _PATH_KEYS:
            values[key] = Path(_as_str(key, value))
        elif key in _STR_KEYS:
            values[key] = _as_str(key, value)
        elif key in _OPTIONAL_STR_KEYS:
            values[key] = None if value is None else _as_str(key, value)
        elif key in _TUPLE_KEYS:
            values[key] = tuple(_as_str_list(key, value))
        elif key == "jobs":
            values[key] = _as_positive_int(key, value)
        elif key == "timeout_seconds":
            values[key] = None if value is None else _as_positive_float(key, value)
        elif key == "fail_fast":
            if not isinstance(value, bool):
                raise ConfigurationError(f"Config key 'fail_fast' must be a boolean, got {value!r}")
            values[key] = value

    for key in ("source_extensions", "header_extensions"):
        if key in values:
            values[key] = tuple(ext if ext.startswith(".") else f".{ext}" for ext in values[key])

    return replace(base or TidyConfig(), **values)


def _as_str(key: str, value: Any) -> str:
    if isinstance(value, Path):
        return str(value)
    if not isinstance(value, str) or not value:
        raise ConfigurationError(f"Config key '{key}' must be a non-empty string, got {value!r}")
    return value


def _as_str_list(key: str, value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"Config key '{key}' must be a list of strings, got {value!r}")
    return [_as_str(key, item) for item in value]


def _as_positive_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(f"Config key '{key}' must be a positive integer, got {value!r}")
    return value


def _as_positive_float(key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigurationError(f"Config key '{key}' must be a positive number, got {value!r}")
    return float(value)
