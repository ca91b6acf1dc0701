"""Application configuration helpers for the Hansard pipeline."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
import types
from typing import Any, Dict, Optional, Type, TypeVar, Union, get_args, get_origin, get_type_hints


_DEFAULT_CONFIG_LOCATIONS = (
    Path("hansard-mine.json"),
    Path.home() / ".config" / "hansard-mine" / "config.json",
)

ENV_PREFIX = "HANSARD_"


@dataclass(slots=True)
class RosterConfig:
    """Where the member roster is downloaded from."""

    base_url: Optional[str] = None
    api_key: Optional[str] = None
    members_path: str = "/members"
    timeout: float = 30.0
    max_retries: int = 3


@dataclass(slots=True)
class ParserConfig:
    """Tuning knobs for transcript parsing and name resolution."""

    chunk_size: int = 50_000
    excerpt_chars: int = 10_000
    max_topics: int = 10
    min_fuzzy_length: int = 4
    name_aliases: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class SourceConfig:
    """Location of the transcript text files."""

    directory: str = "transcripts"
    pattern: str = "DR-*.txt"


@dataclass(slots=True)
class StorageConfig:
    """Configuration for the local SQLite database."""

    database_url: str = "sqlite:///hansard.db"
    echo_sql: bool = False


@dataclass(slots=True)
class AppConfig:
    """High level application configuration."""

    roster: RosterConfig
    parser: ParserConfig
    source: SourceConfig
    storage: StorageConfig


_SECTIONS: Dict[str, Type[Any]] = {
    "roster": RosterConfig,
    "parser": ParserConfig,
    "source": SourceConfig,
    "storage": StorageConfig,
}


def _load_from_env(prefix: str) -> Dict[str, Any]:
    """Load configuration entries for ``prefix`` from the environment."""

    data: Dict[str, Any] = {}
    for key, value in os.environ.items():
        if key.startswith(prefix):
            normalized_key = key.removeprefix(prefix)
            data[normalized_key.lower()] = value
    return data


def _merge_dict(target: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    merged = target.copy()
    merged.update({k: v for k, v in updates.items() if v is not None})
    return merged


def _load_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf8") as fh:
        return json.load(fh)


T = TypeVar("T")


def _coerce_value(value: Any, annotation: Any) -> Any:
    """Best-effort conversion of ``value`` to match ``annotation``."""

    if value is None:
        return None

    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]  # noqa: E721 - allow Optional
        if not args:
            return None
        last_error: Exception | None = None
        for candidate in args:
            try:
                return _coerce_value(value, candidate)
            except (TypeError, ValueError) as exc:
                last_error = exc
        raise ValueError(f"Cannot convert {value!r} to {annotation}") from last_error

    target_type = origin or annotation

    if target_type in {Any, object}:
        return value

    if target_type is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in {"true", "1", "yes", "y", "on"}:
                return True
            if normalized in {"false", "0", "no", "n", "off"}:
                return False
        if isinstance(value, (int, float)):
            return bool(value)
        raise ValueError(f"Cannot convert {value!r} to bool")

    if target_type is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, (float, str)):
            return int(float(value))
        raise ValueError(f"Cannot convert {value!r} to int")

    if target_type is float:
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            return float(value)
        raise ValueError(f"Cannot convert {value!r} to float")

    if target_type is str:
        if isinstance(value, str):
            return value
        return str(value)

    if target_type is dict:
        # Environment variables carry mappings as JSON objects.
        if isinstance(value, str):
            value = json.loads(value)
        if not isinstance(value, dict):
            raise ValueError(f"Cannot convert {value!r} to dict")
        key_type, value_type = (get_args(annotation) or (Any, Any))
        return {
            _coerce_value(key, key_type): _coerce_value(item, value_type) for key, item in value.items()
        }

    return value


def _dataclass_from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
    """Create dataclass ``cls`` while coercing ``data`` to the proper types."""

    kwargs: Dict[str, Any] = {}
    type_hints = get_type_hints(cls)
    for item in fields(cls):
        if item.name not in data:
            continue
        try:
            annotation = type_hints.get(item.name, item.type)
            kwargs[item.name] = _coerce_value(data[item.name], annotation)
        except (TypeError, ValueError) as exc:
            raise ValueError(
                f"Invalid value for {cls.__name__}.{item.name}: {data[item.name]!r}"
            ) from exc
    return cls(**kwargs)


def resolve_config_path(explicit_path: Optional[Path] = None) -> Path:
    """Return the effective configuration file path.

    An explicit path wins. Otherwise the first existing default location is
    used, falling back to ``~/.config/hansard-mine/config.json``.
    """

    if explicit_path:
        return explicit_path

    for candidate in _DEFAULT_CONFIG_LOCATIONS:
        if candidate.exists():
            return candidate

    return _DEFAULT_CONFIG_LOCATIONS[-1]


def load_config(explicit_path: Optional[Path] = None) -> AppConfig:
    """Create the application configuration.

    Defaults, an optional JSON file and ``HANSARD_SECTION_FIELD`` environment
    variables (e.g. ``HANSARD_STORAGE_DATABASE_URL``) are merged in that order.
    """

    base = {name: asdict(cls()) for name, cls in _SECTIONS.items()}

    file_data: Dict[str, Any] = {}
    if explicit_path:
        file_data = _load_config_file(explicit_path)
    else:
        for candidate in _DEFAULT_CONFIG_LOCATIONS:
            file_data = _load_config_file(candidate)
            if file_data:
                break

    merged: Dict[str, Any] = {}
    for name, cls in _SECTIONS.items():
        section = _merge_dict(base[name], file_data.get(name, {}))
        section = _merge_dict(section, _load_from_env(f"{ENV_PREFIX}{name.upper()}_"))
        merged[name] = _dataclass_from_dict(cls, section)

    return AppConfig(**merged)


def save_config(config: AppConfig, path: Optional[Path] = None) -> Path:
    """Persist ``config`` as JSON and return the target path."""

    target = resolve_config_path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    data = {name: asdict(getattr(config, name)) for name in _SECTIONS}
    with target.open("w", encoding="utf8") as fh:
        json.dump(data, fh, ensure_ascii=False, indent=2, sort_keys=True)
        fh.write("\n")
    return target


__all__ = [
    "AppConfig",
    "ParserConfig",
    "RosterConfig",
    "SourceConfig",
    "StorageConfig",
    "load_config",
    "resolve_config_path",
    "save_config",
]
