"""Top-level package for the YOLO single-image toolkit."""

from .config import AppConfig
from .models.base import ModelDescriptor, ModelTask
from .services.controller import DetectionController
from .settings_store import SettingsStore

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "DetectionController",
    "ModelDescriptor",
    "ModelTask",
    "SettingsStore",
    "__version__",
]
