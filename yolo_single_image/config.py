"""Application-wide configuration models and persistence helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .models.base import ModelDescriptor, ModelTask


class ModelEntry(BaseModel):
    """A model offered to the user in addition to the built-in catalog."""

    name: str = Field(description="Model name; also the cache file stem.")
    task: ModelTask = Field(default=ModelTask.DETECT, description="Vision task.")
    url: str | None = Field(
        default=None,
        description="Download URL. Leave empty for models in the bundle directory.",
    )

    def to_descriptor(self) -> ModelDescriptor:
        if self.url:
            return ModelDescriptor.remote(self.name, self.url, self.task)
        return ModelDescriptor.local(self.name, self.task)


class AppConfig(BaseModel):
    """Validates and stores runtime settings for the application."""

    default_model: str = Field(
        default="yolo11n-seg",
        description="Name of the model loaded when none is requested explicitly.",
    )
    models: list[ModelEntry] = Field(
        default_factory=list,
        description="Extra models appended to the built-in catalog.",
    )
    cache_directory: Path | None = Field(
        default=None,
        description="Where downloaded models are stored. Defaults to the user cache directory.",
    )
    bundle_directory: Path | None = Field(
        default=None,
        description="Directory holding bundled model files.",
    )
    model_extension: str = Field(
        default=".pt",
        description="File extension of model files in the bundle and cache directories.",
    )
    download_timeout: float = Field(
        default=120.0,
        ge=1.0,
        le=3600.0,
        description="Timeout (seconds) for model downloads.",
    )
    confidence_threshold: float = Field(
        default=0.25,
        ge=0.0,
        le=1.0,
        description="Minimum confidence for a prediction to be reported.",
    )
    image_size: int = Field(
        default=640,
        ge=32,
        le=4096,
        description="Inference image size passed to the engine.",
    )
    device: str = Field(
        default="auto",
        description="Preferred accelerator: auto, cpu, cuda, mps or xpu.",
    )
    output_directory: Path | None = Field(
        default=None,
        description="Where annotated images and sidecars are written.",
    )
    sidecar_extension: str = Field(
        default="yaml",
        description="File extension to use when saving detection sidecars.",
    )
    recursive: bool = Field(
        default=False,
        description="If true, traverse sub-directories when processing folders.",
    )
    include_hidden: bool = Field(
        default=False,
        description="If true, include files and directories that start with a dot.",
    )

    @field_validator("model_extension")
    @classmethod
    def _normalise_model_extension(cls, value: str) -> str:
        cleaned = value.strip().lstrip(".")
        if not cleaned:
            raise ValueError("A model file extension must be configured.")
        return f".{cleaned}"

    @field_validator("device")
    @classmethod
    def _normalise_device(cls, value: str) -> str:
        return (value or "auto").strip().lower()

    @model_validator(mode="after")
    def _validate_sidecar_extension(self) -> AppConfig:
        extension = self.sidecar_extension.lstrip(".")
        if not extension:
            raise ValueError("A sidecar extension must be configured.")
        self.sidecar_extension = extension
        return self

    def as_dict(self) -> dict[str, Any]:
        """Serialize the configuration to primitive Python types."""
        return self.model_dump(mode="json")

    @classmethod
    def load(cls, path: Path) -> AppConfig:
        """Load configuration from a YAML or JSON file."""
        data = _read_config_file(path)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid configuration file at {path}: {exc}") from exc

    def save(self, path: Path) -> None:
        """Persist configuration to a YAML (or JSON) file."""
        _write_config_file(path, self.as_dict())


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        return yaml.safe_load(text) or {}
    return json.loads(text)


def _write_config_file(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() in {".yaml", ".yml"}:
        path.write_text(yaml.safe_dump(data, allow_unicode=False, sort_keys=False), encoding="utf-8")
    else:
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
