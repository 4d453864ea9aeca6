"""Service layer: preprocessing, state types and the detection controller."""

from .controller import DetectionController
from .preprocessing import ImageProcessingService, correct_orientation
from .state import (
    ControllerSnapshot,
    Failed,
    Idle,
    Loaded,
    Loading,
    ModelLoadState,
    ProcessingResult,
)

__all__ = [
    "ControllerSnapshot",
    "DetectionController",
    "Failed",
    "Idle",
    "ImageProcessingService",
    "Loaded",
    "Loading",
    "ModelLoadState",
    "ProcessingResult",
    "correct_orientation",
]
