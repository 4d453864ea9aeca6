"""Tests for orientation correction and the processing service."""

from __future__ import annotations

import pytest
from PIL import Image

from yolo_single_image.models.base import InferenceOutput, ModelTask
from yolo_single_image.services.preprocessing import (
    ORIENTATION_TAG,
    ImageProcessingService,
    correct_orientation,
    image_orientation,
)

RED = (255, 0, 0)
BLUE = (0, 0, 255)


def _oriented_image(orientation: int | None) -> Image.Image:
    """Two pixels wide, one tall: red on the left, blue on the right."""
    image = Image.new("RGB", (2, 1))
    image.putpixel((0, 0), RED)
    image.putpixel((1, 0), BLUE)
    if orientation is not None:
        exif = image.getexif()
        exif[ORIENTATION_TAG] = orientation
        image.info["exif"] = exif.tobytes()
    return image


def test_orientation_down_rotates_180():
    image = _oriented_image(3)

    corrected = correct_orientation(image)

    assert corrected.size == (2, 1)
    assert corrected.getpixel((0, 0)) == BLUE
    assert corrected.getpixel((1, 0)) == RED


def test_orientation_right_rotates_clockwise():
    image = _oriented_image(6)

    corrected = correct_orientation(image)

    assert corrected.size == (1, 2)
    assert corrected.getpixel((0, 0)) == RED
    assert corrected.getpixel((0, 1)) == BLUE


def test_corrected_image_drops_orientation_tag():
    corrected = correct_orientation(_oriented_image(6))

    assert image_orientation(corrected) == 1


@pytest.mark.parametrize("orientation", [None, 1, 2, 4, 5, 7, 8])
def test_other_orientations_pass_through(orientation):
    image = _oriented_image(orientation)

    assert correct_orientation(image) is image


def test_transpose_failure_returns_original(monkeypatch):
    image = _oriented_image(3)

    def broken_transpose(self, method):
        raise OSError("truncated")

    monkeypatch.setattr(Image.Image, "transpose", broken_transpose)

    assert correct_orientation(image) is image


class RecordingEngine:
    def __init__(self, output: InferenceOutput | None) -> None:
        self.output = output
        self.seen: list[Image.Image] = []

    @property
    def task(self) -> ModelTask:
        return ModelTask.DETECT

    def infer(self, image):
        self.seen.append(image)
        return self.output


def test_process_image_runs_engine_on_corrected_image():
    image = _oriented_image(6)
    output = InferenceOutput(annotated_image=Image.new("RGB", (1, 2)))
    engine = RecordingEngine(output)

    result = ImageProcessingService().process_image(image, engine)

    assert result is not None
    assert result.original_image is image
    assert result.corrected_image.size == (1, 2)
    assert engine.seen[0] is result.corrected_image
    assert result.annotated_image is output.annotated_image


def test_process_image_returns_none_without_output():
    engine = RecordingEngine(None)

    assert ImageProcessingService().process_image(_oriented_image(None), engine) is None
