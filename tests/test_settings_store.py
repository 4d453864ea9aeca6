"""Tests for the settings store helpers."""

from __future__ import annotations

from types import SimpleNamespace

from yolo_single_image.config import AppConfig
from yolo_single_image.settings_store import (
    SettingsStore,
    default_cache_directory,
    default_settings_path,
    resolve_cache_directory,
)


def _fake_os(name: str, **env: str) -> SimpleNamespace:
    def getenv(key: str, default=None):
        return env.get(key, default)

    return SimpleNamespace(name=name, getenv=getenv)


def test_default_settings_path_respects_xdg(monkeypatch, tmp_path):
    config_root = tmp_path / "xdg"
    fake_os = _fake_os("posix", XDG_CONFIG_HOME=str(config_root))
    monkeypatch.setattr("yolo_single_image.settings_store.os", fake_os)

    resolved = default_settings_path()

    assert resolved == config_root / "yolo_single_image" / "settings.yaml"


def test_default_settings_path_windows(monkeypatch, tmp_path):
    appdata = tmp_path / "AppData" / "Roaming"
    fake_os = _fake_os("nt", APPDATA=str(appdata))
    monkeypatch.setattr("yolo_single_image.settings_store.os", fake_os)

    resolved = default_settings_path()

    assert resolved == appdata / "yolo_single_image" / "settings.yaml"


def test_default_cache_directory_uses_xdg_cache(monkeypatch, tmp_path):
    fake_os = _fake_os("posix", XDG_CACHE_HOME=str(tmp_path / "cache"))
    monkeypatch.setattr("yolo_single_image.settings_store.os", fake_os)

    assert default_cache_directory() == tmp_path / "cache" / "yolo_single_image" / "models"


def test_default_cache_directory_env_override(monkeypatch, tmp_path):
    fake_os = _fake_os("posix", YOLO_SINGLE_IMAGE_CACHE_DIR=str(tmp_path / "models"))
    monkeypatch.setattr("yolo_single_image.settings_store.os", fake_os)

    assert default_cache_directory() == tmp_path / "models"


def test_resolve_cache_directory_prefers_config(tmp_path):
    config = AppConfig(cache_directory=tmp_path / "explicit")

    assert resolve_cache_directory(config) == tmp_path / "explicit"


def test_settings_store_round_trip(tmp_path):
    target_path = tmp_path / "settings.yaml"
    store = SettingsStore(path=target_path)
    original = AppConfig(default_model="demo", recursive=True, include_hidden=True)

    store.save(original)
    loaded = store.load()

    assert loaded.default_model == "demo"
    assert loaded.recursive is True
    assert loaded.include_hidden is True
    assert target_path.exists()


def test_settings_store_loads_defaults_when_missing(tmp_path):
    store = SettingsStore(path=tmp_path / "missing.yaml")

    config = store.load()

    assert isinstance(config, AppConfig)
    assert config == AppConfig()
