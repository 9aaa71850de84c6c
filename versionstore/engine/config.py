"""
versionstore Configuration — Load and validate versionstore.yaml at startup.

Usage:
    from versionstore.engine.config import load_config, get_config

The store root can be overridden with the DIRECTORY environment variable,
which takes precedence over the file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from versionstore.engine.errors import ConfigError

CONFIG_FILENAME = "versionstore.yaml"
ROOT_ENV_VAR = "DIRECTORY"

POINTER_MODES = ("auto", "symlink", "file")


# ---------------------------------------------------------------------------
# Pydantic models for versionstore.yaml
# ---------------------------------------------------------------------------

class StoreConfig(BaseModel):
    root: str = "files"
    pointer: str = "auto"
    fsync: bool = True

    @field_validator("pointer")
    @classmethod
    def validate_pointer(cls, v: str) -> str:
        if v not in POINTER_MODES:
            raise ValueError(f"pointer must be auto/symlink/file, got '{v}'")
        return v

    @field_validator("root")
    @classmethod
    def validate_root(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("root must not be empty")
        return v


class LogAsyncQueueConfig(BaseModel):
    flush_interval_ms: int = 100
    flush_batch_size: int = 50
    max_queue_size: int = 10000


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".versionstore/logs"
    events: bool = True
    async_queue: LogAsyncQueueConfig = LogAsyncQueueConfig()

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level '{v}'")
        return level


class VersionStoreConfig(BaseModel):
    """Root model for versionstore.yaml."""
    store: StoreConfig = StoreConfig()
    logging: LoggingConfig = LoggingConfig()

    @property
    def root_path(self) -> Path:
        return Path(self.store.root)


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[VersionStoreConfig] = None


def _find_config_file() -> Optional[Path]:
    """Walk up from CWD looking for versionstore.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    root = os.environ.get(ROOT_ENV_VAR)
    if root:
        data.setdefault("store", {})
        data["store"]["root"] = root
    return data


def load_config(config_path: Optional[str] = None) -> VersionStoreConfig:
    """
    Load and validate versionstore.yaml.

    Args:
        config_path: Explicit path to the config file. If None, auto-discovers
            from the current directory upward.

    Returns:
        Validated VersionStoreConfig. Defaults (plus environment overrides)
        when no file exists.

    Raises:
        ConfigError: the file is not valid YAML or fails validation.
    """
    global _config

    path = Path(config_path) if config_path else _find_config_file()

    raw: Dict[str, Any] = {}
    if path is not None and path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}", path=str(path)) from e
        if not isinstance(raw, dict):
            raise ConfigError(f"{path} must contain a mapping", path=str(path))

    data: Dict[str, Any] = {}
    for key in ("store", "logging"):
        section = raw.get(key) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"'{key}' must be a mapping", path=str(path))
        data[key] = dict(section)
    data = _apply_env_overrides(data)

    try:
        _config = VersionStoreConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}", path=str(path)) from e
    return _config


def get_config() -> VersionStoreConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
