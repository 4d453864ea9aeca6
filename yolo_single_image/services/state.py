"""Immutable state objects published by the detection controller."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from PIL import Image

from ..models.base import InferenceEngine, InferenceOutput, ModelDescriptor


@dataclass(frozen=True, slots=True)
class Idle:
    """No model has been requested yet."""


@dataclass(frozen=True, slots=True)
class Loading:
    """A model is being fetched or materialized."""


@dataclass(frozen=True, slots=True)
class Loaded:
    """A model is ready for inference."""

    engine: InferenceEngine


@dataclass(frozen=True, slots=True)
class Failed:
    """The most recent load attempt failed."""

    error: BaseException


ModelLoadState = Union[Idle, Loading, Loaded, Failed]


@dataclass(frozen=True, slots=True)
class ProcessingResult:
    """Outcome of one preprocess + inference pass."""

    original_image: Image.Image
    corrected_image: Image.Image
    inference_output: InferenceOutput

    @property
    def annotated_image(self) -> Image.Image:
        return self.inference_output.annotated_image


@dataclass(frozen=True, slots=True)
class ControllerSnapshot:
    """Read-only view of the controller handed to observers."""

    model_state: ModelLoadState
    current_model: ModelDescriptor | None
    selected_image: Image.Image | None
    processing_result: ProcessingResult | None
    is_processing: bool
    error_message: str | None

    @property
    def is_model_loaded(self) -> bool:
        return isinstance(self.model_state, Loaded)

    @property
    def is_model_loading(self) -> bool:
        return isinstance(self.model_state, Loading)

    @property
    def display_image(self) -> Image.Image | None:
        if self.processing_result is not None:
            return self.processing_result.annotated_image
        return self.selected_image

    @property
    def status_text(self) -> str:
        state = self.model_state
        if isinstance(state, Idle):
            return "No model selected"
        if isinstance(state, Loading):
            return "Loading model..."
        if isinstance(state, Failed):
            return "Model failed to load"
        if self.is_processing:
            return "Processing image..."
        if self.selected_image is not None:
            return "Image ready"
        return "Model loaded - Select an image"
