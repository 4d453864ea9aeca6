"""Catalog of models the user can choose from."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict

from .base import ModelDescriptor, ModelTask

if TYPE_CHECKING:
    from ..config import AppConfig

logger = logging.getLogger(__name__)

BUILTIN_MODELS: tuple[ModelDescriptor, ...] = (
    ModelDescriptor.local("yolo11n-seg", ModelTask.SEGMENT),
    ModelDescriptor.remote(
        "custom-fish-model",
        "https://github.com/DMelisena/yolo_try/releases/download/prerelease/"
        "best-e100-random-fishes.mlmodel.zip",
        ModelTask.DETECT,
    ),
)


class ModelRegistry:
    """Tracks available model descriptors by name."""

    _descriptors: Dict[str, ModelDescriptor] = {}
    _bootstrap_complete: bool = False

    @classmethod
    def register(cls, descriptor: ModelDescriptor) -> None:
        """Register ``descriptor``, replacing any entry with the same name."""
        if descriptor.name in cls._descriptors:
            logger.debug("Replacing catalog entry '%s'", descriptor.name)
        cls._descriptors[descriptor.name] = descriptor

    @classmethod
    def unregister(cls, name: str) -> None:
        cls._descriptors.pop(name, None)

    @classmethod
    def ensure_bootstrapped(cls) -> None:
        if cls._bootstrap_complete:
            return
        for descriptor in BUILTIN_MODELS:
            cls._descriptors.setdefault(descriptor.name, descriptor)
        cls._bootstrap_complete = True

    @classmethod
    def register_from_config(cls, config: AppConfig) -> None:
        cls.ensure_bootstrapped()
        for entry in config.models:
            cls.register(entry.to_descriptor())

    @classmethod
    def list_descriptors(cls) -> list[ModelDescriptor]:
        """Return all registered descriptors in registration order."""
        cls.ensure_bootstrapped()
        return list(cls._descriptors.values())

    @classmethod
    def get(cls, name: str) -> ModelDescriptor:
        cls.ensure_bootstrapped()
        try:
            return cls._descriptors[name]
        except KeyError as exc:
            available = ", ".join(sorted(cls._descriptors))
            raise KeyError(f"Unknown model '{name}'. Available: {available}") from exc
