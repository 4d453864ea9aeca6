"""Model descriptors, catalog and inference backends."""

from .base import (
    Detection,
    EngineFactory,
    InferenceEngine,
    InferenceFailure,
    InferenceOutput,
    LocalBundle,
    MaterializationError,
    ModelDescriptor,
    ModelError,
    ModelTask,
    RemoteURL,
)
from .registry import ModelRegistry

__all__ = [
    "Detection",
    "EngineFactory",
    "InferenceEngine",
    "InferenceFailure",
    "InferenceOutput",
    "LocalBundle",
    "MaterializationError",
    "ModelDescriptor",
    "ModelError",
    "ModelRegistry",
    "ModelTask",
    "RemoteURL",
]
