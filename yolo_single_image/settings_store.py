"""Well-known locations for user settings and downloaded models."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .config import AppConfig

logger = logging.getLogger(__name__)

APP_DIRNAME = "yolo_single_image"


class SettingsStore:
    """Load and save application settings to a well-known path."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_settings_path()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> AppConfig:
        """Return the stored settings, or defaults when nothing was saved yet."""
        if not self._path.is_file():
            logger.debug("No settings at %s; using defaults", self._path)
            return AppConfig()
        logger.debug("Loading settings from %s", self._path)
        return AppConfig.load(self._path)

    def save(self, config: AppConfig) -> None:
        config.save(self._path)
        logger.info("Saved settings to %s", self._path)


def default_settings_path() -> Path:
    if os.name == "nt":
        base = Path(os.getenv("APPDATA", Path.home() / "AppData" / "Roaming"))
    else:
        base = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base.expanduser() / APP_DIRNAME / "settings.yaml"


def default_cache_directory() -> Path:
    """Return the per-user directory for downloaded model files."""
    override = os.getenv("YOLO_SINGLE_IMAGE_CACHE_DIR")
    if override:
        return Path(override).expanduser()
    if os.name == "nt":
        base = Path(os.getenv("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
    else:
        base = Path(os.getenv("XDG_CACHE_HOME", Path.home() / ".cache"))
    return base.expanduser() / APP_DIRNAME / "models"


def resolve_cache_directory(config: AppConfig) -> Path:
    if config.cache_directory is not None:
        return config.cache_directory.expanduser()
    return default_cache_directory()
