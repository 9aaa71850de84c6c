"""versionstore Engine — Errors, configuration, structured event logging."""

from versionstore.engine.config import VersionStoreConfig, get_config, load_config  # noqa: F401
from versionstore.engine.errors import (  # noqa: F401
    ConfigError,
    CorruptionError,
    InvalidNameError,
    NotFoundError,
    StoreIOError,
    VersionStoreError,
)

__all__ = [
    "VersionStoreConfig",
    "get_config",
    "load_config",
    "VersionStoreError",
    "InvalidNameError",
    "NotFoundError",
    "StoreIOError",
    "CorruptionError",
    "ConfigError",
]
