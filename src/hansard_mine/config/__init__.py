"""Configuration helpers for the Hansard pipeline."""
from __future__ import annotations

from .settings import (
    AppConfig,
    ParserConfig,
    RosterConfig,
    SourceConfig,
    StorageConfig,
    load_config,
    resolve_config_path,
    save_config,
)

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
