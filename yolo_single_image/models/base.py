"""Model descriptors and the interfaces an inference backend must satisfy."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol, Union

from PIL import Image


class ModelTask(str, Enum):
    """Vision tasks a YOLO model can be materialized for."""

    DETECT = "detect"
    SEGMENT = "segment"
    CLASSIFY = "classify"


@dataclass(frozen=True, slots=True)
class LocalBundle:
    """Model weights shipped with the application."""


@dataclass(frozen=True, slots=True)
class RemoteURL:
    """Model weights downloaded on first use."""

    url: str


ModelSource = Union[LocalBundle, RemoteURL]


@dataclass(frozen=True, slots=True)
class ModelDescriptor:
    """Identifies which model to load and for which task.

    A descriptor says nothing about whether the model has been loaded. The
    ``name`` doubles as the cache key, so it must be a plain file stem.
    """

    name: str
    task: ModelTask = ModelTask.DETECT
    source: ModelSource = field(default_factory=LocalBundle)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Model name must not be empty.")
        if "/" in self.name or "\\" in self.name or self.name in {".", ".."}:
            raise ValueError(f"Model name {self.name!r} must not contain path separators.")
        if not isinstance(self.task, ModelTask):
            object.__setattr__(self, "task", ModelTask(self.task))

    @classmethod
    def local(cls, name: str, task: ModelTask = ModelTask.DETECT) -> ModelDescriptor:
        return cls(name=name, task=task, source=LocalBundle())

    @classmethod
    def remote(cls, name: str, url: str, task: ModelTask = ModelTask.DETECT) -> ModelDescriptor:
        return cls(name=name, task=task, source=RemoteURL(url))

    @property
    def is_remote(self) -> bool:
        return isinstance(self.source, RemoteURL)

    @property
    def url(self) -> str | None:
        if isinstance(self.source, RemoteURL):
            return self.source.url
        return None

    def file_name(self, extension: str) -> str:
        """Return the on-disk file name used for this model."""
        suffix = extension if extension.startswith(".") else f".{extension}"
        return f"{self.name}{suffix}"

    def as_dict(self) -> dict[str, str | None]:
        return {
            "name": self.name,
            "task": self.task.value,
            "source": "remote" if self.is_remote else "local",
            "url": self.url,
        }


@dataclass(frozen=True, slots=True)
class Detection:
    """A single labelled prediction produced by the engine."""

    label: str
    confidence: float
    class_id: int
    box: tuple[float, float, float, float] | None = None

    def as_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "label": self.label,
            "confidence": round(float(self.confidence), 4),
            "class_id": int(self.class_id),
        }
        if self.box is not None:
            payload["box"] = [round(float(value), 2) for value in self.box]
        return payload


@dataclass(frozen=True, slots=True)
class InferenceOutput:
    """Structured result of one inference call."""

    annotated_image: Image.Image
    detections: tuple[Detection, ...] = ()
    task: ModelTask = ModelTask.DETECT
    speed: dict[str, float] = field(default_factory=dict)


class ModelError(RuntimeError):
    """Raised when a model cannot be loaded or cannot produce output."""


class MaterializationError(ModelError):
    """The engine could not load a model file for the requested task."""


class InferenceFailure(ModelError):
    """The engine failed while running inference."""


class InferenceEngine(Protocol):
    """A materialized model, ready to run on images."""

    @property
    def task(self) -> ModelTask:
        """Return the task the model was loaded for."""

    def infer(self, image: Image.Image) -> InferenceOutput | None:
        """Run the model on ``image``; ``None`` when nothing was produced."""


class EngineFactory(Protocol):
    """Turns a model file path and task into an :class:`InferenceEngine`."""

    def materialize(self, model_path: str | Path, task: ModelTask) -> InferenceEngine:
        """Load the model or raise :class:`MaterializationError`."""
