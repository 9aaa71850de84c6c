"""
versionstore Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolate_globals(monkeypatch):
    """Reset config and event-log singletons between tests."""
    import versionstore.engine.config as cfg_mod
    import versionstore.engine.logging as log_mod

    monkeypatch.delenv("DIRECTORY", raising=False)
    cfg_mod._config = None
    yield
    log_mod.shutdown_logging()
    cfg_mod._config = None


@pytest.fixture
def store_root(tmp_path) -> Path:
    """Empty store root directory."""
    root = tmp_path / "files"
    root.mkdir()
    return root


@pytest.fixture
def version_log(store_root):
    from versionstore.documents.version_log import VersionLog

    return VersionLog(store_root, fsync=False)


@pytest.fixture
def catalog(store_root):
    from versionstore.documents.catalog import CatalogIndex

    return CatalogIndex(store_root)


class FrozenClock:
    """Controllable clock for VersionLog; advances only when told to."""

    def __init__(self, start: datetime = datetime(2024, 3, 2, 10, 15, 30, 123000, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def config_file(tmp_path, store_root) -> Path:
    """versionstore.yaml pointing at the temp store, event log under tmp."""
    path = tmp_path / "versionstore.yaml"
    path.write_text(
        "store:\n"
        f"  root: {store_root}\n"
        "  pointer: auto\n"
        "  fsync: false\n"
        "logging:\n"
        "  level: WARNING\n"
        f"  directory: {tmp_path / 'logs'}\n",
        encoding="utf-8",
    )
    return path
