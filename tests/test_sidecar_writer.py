"""Tests for the annotated image + sidecar writer."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from PIL import Image

from yolo_single_image.io.sidecar import DetectionSidecarWriter, build_report
from yolo_single_image.models.base import Detection, InferenceOutput, ModelTask
from yolo_single_image.services.state import ProcessingResult


@pytest.fixture()
def sample_result() -> ProcessingResult:
    image = Image.new("RGB", (8, 6))
    output = InferenceOutput(
        annotated_image=Image.new("RGB", (8, 6), (255, 0, 0)),
        detections=(
            Detection(label="fish", confidence=0.912345, class_id=0, box=(1.0, 2.0, 5.257, 6.0)),
            Detection(label="coral", confidence=0.4, class_id=3),
        ),
        task=ModelTask.SEGMENT,
        speed={"inference": 12.3456},
    )
    return ProcessingResult(original_image=image, corrected_image=image, inference_output=output)


def test_build_report(sample_result: ProcessingResult) -> None:
    report = build_report(Path("/tmp/example.jpg"), sample_result, model="yolo11n-seg")

    assert report == {
        "image": str(Path("/tmp/example.jpg")),
        "model": "yolo11n-seg",
        "task": "segment",
        "size": [8, 6],
        "detections": [
            {"label": "fish", "confidence": 0.9123, "class_id": 0, "box": [1.0, 2.0, 5.26, 6.0]},
            {"label": "coral", "confidence": 0.4, "class_id": 3},
        ],
        "speed": {"inference": 12.35},
    }


def test_writes_yaml_sidecar(tmp_path: Path, sample_result: ProcessingResult) -> None:
    writer = DetectionSidecarWriter(tmp_path / "out", extension="yaml")

    annotated_path, sidecar_path = writer.write(
        tmp_path / "image.jpg", sample_result, model="demo"
    )

    assert annotated_path == tmp_path / "out" / "image.annotated.png"
    assert sidecar_path == tmp_path / "out" / "image.yaml"
    with Image.open(annotated_path) as saved:
        assert saved.getpixel((0, 0)) == (255, 0, 0)
    loaded = yaml.safe_load(sidecar_path.read_text(encoding="utf-8"))
    assert loaded["model"] == "demo"
    assert loaded["annotated_image"] == str(annotated_path)
    assert [item["label"] for item in loaded["detections"]] == ["fish", "coral"]


def test_writes_json_sidecar(tmp_path: Path, sample_result: ProcessingResult) -> None:
    writer = DetectionSidecarWriter(tmp_path, extension=".json")

    _, sidecar_path = writer.write(tmp_path / "image.png", sample_result)

    assert sidecar_path.suffix == ".json"
    loaded = json.loads(sidecar_path.read_text(encoding="utf-8"))
    assert loaded["task"] == "segment"
    assert loaded["model"] is None
