"""Orientation correction and the preprocess + inference unit of work."""

from __future__ import annotations

import logging
from typing import Protocol

from PIL import ExifTags, Image

from ..models.base import InferenceEngine
from .state import ProcessingResult

logger = logging.getLogger(__name__)

ORIENTATION_TAG = ExifTags.Base.Orientation

# Only these two EXIF orientation codes are corrected; everything else passes
# through untouched.
ORIENTATION_DOWN = 3
ORIENTATION_RIGHT = 6

_TRANSPOSE_FOR_ORIENTATION = {
    ORIENTATION_DOWN: Image.Transpose.ROTATE_180,
    ORIENTATION_RIGHT: Image.Transpose.ROTATE_270,
}


class ImageProcessingProtocol(Protocol):
    def correct_orientation(self, image: Image.Image) -> Image.Image:
        """Return an upright copy of ``image`` (or ``image`` itself)."""

    def process_image(
        self, image: Image.Image, engine: InferenceEngine
    ) -> ProcessingResult | None:
        """Correct orientation, run inference and bundle the result."""


def image_orientation(image: Image.Image) -> int:
    """Return the EXIF orientation code of ``image`` (1 when absent)."""
    try:
        return int(image.getexif().get(ORIENTATION_TAG, 1))
    except (TypeError, ValueError):
        return 1


def correct_orientation(image: Image.Image) -> Image.Image:
    orientation = image_orientation(image)
    method = _TRANSPOSE_FOR_ORIENTATION.get(orientation)
    if method is None:
        return image

    try:
        corrected = image.transpose(method)
    except (OSError, ValueError) as exc:
        logger.warning("Could not apply orientation %s; using image as-is: %s", orientation, exc)
        return image

    exif = corrected.getexif()
    if ORIENTATION_TAG in exif:
        del exif[ORIENTATION_TAG]
        if "exif" in corrected.info:
            corrected.info["exif"] = exif.tobytes()
    logger.debug("Applied orientation correction for EXIF code %s", orientation)
    return corrected


class ImageProcessingService:
    """Default preprocessing pipeline used by the controller."""

    def correct_orientation(self, image: Image.Image) -> Image.Image:
        return correct_orientation(image)

    def process_image(
        self, image: Image.Image, engine: InferenceEngine
    ) -> ProcessingResult | None:
        corrected = self.correct_orientation(image)
        output = engine.infer(corrected)
        if output is None:
            return None
        return ProcessingResult(
            original_image=image,
            corrected_image=corrected,
            inference_output=output,
        )
