"""Unit tests for versionstore.engine.config — models, loading, env override."""

from pathlib import Path

import pytest

from versionstore.engine.config import (
    LoggingConfig,
    StoreConfig,
    VersionStoreConfig,
    get_config,
    load_config,
)
from versionstore.engine.errors import ConfigError


class TestModels:
    def test_defaults(self):
        cfg = VersionStoreConfig()
        assert cfg.store.root == "files"
        assert cfg.store.pointer == "auto"
        assert cfg.store.fsync is True
        assert cfg.logging.level == "INFO"
        assert cfg.logging.async_queue.flush_batch_size == 50
        assert cfg.root_path == Path("files")

    def test_valid_pointer_modes(self):
        for mode in ("auto", "symlink", "file"):
            assert StoreConfig(pointer=mode).pointer == mode

    def test_invalid_pointer_mode(self):
        with pytest.raises(ValueError, match="auto/symlink/file"):
            StoreConfig(pointer="hardlink")

    def test_empty_root_rejected(self):
        with pytest.raises(ValueError):
            StoreConfig(root="  ")

    def test_level_normalized(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            LoggingConfig(level="chatty")


class TestLoadConfig:
    def test_load_from_file(self, config_file, store_root):
        cfg = load_config(str(config_file))
        assert cfg.store.root == str(store_root)
        assert cfg.store.fsync is False
        assert cfg.logging.level == "WARNING"

    def test_missing_file_returns_defaults(self, tmp_path):
        cfg = load_config(str(tmp_path / "nonexistent.yaml"))
        assert cfg.store.root == "files"

    def test_auto_discovery_walks_up(self, tmp_path, monkeypatch):
        (tmp_path / "versionstore.yaml").write_text("store:\n  root: found\n", encoding="utf-8")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert load_config().store.root == "found"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "versionstore.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)).store.pointer == "auto"

    def test_directory_env_overrides_file(self, config_file, monkeypatch):
        monkeypatch.setenv("DIRECTORY", "/srv/documents")
        assert load_config(str(config_file)).store.root == "/srv/documents"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "versionstore.yaml"
        path.write_text("store: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(str(path))

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "versionstore.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(str(path))

    @pytest.mark.parametrize("text", ["store: [1, 2]\n", "logging: just text\n"])
    def test_non_mapping_section(self, tmp_path, text):
        path = tmp_path / "versionstore.yaml"
        path.write_text(text, encoding="utf-8")
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config(str(path))

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "versionstore.yaml"
        path.write_text("store:\n  pointer: nope\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(str(path))

    def test_get_config_caches(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert get_config() is get_config()
