"""Persist annotated images and detection summaries next to each other."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from ..services.state import ProcessingResult


def build_report(
    image_path: Path,
    result: ProcessingResult,
    *,
    model: str | None = None,
) -> dict[str, Any]:
    """Return a plain-data summary of a processing result."""
    output = result.inference_output
    return {
        "image": str(image_path),
        "model": model,
        "task": output.task.value,
        "size": list(result.corrected_image.size),
        "detections": [detection.as_dict() for detection in output.detections],
        "speed": {key: round(float(value), 2) for key, value in output.speed.items()},
    }


class DetectionSidecarWriter:
    """Write the annotated image plus a YAML or JSON sidecar describing it."""

    def __init__(self, output_directory: Path, *, extension: str = "yaml") -> None:
        self.output_directory = output_directory
        self.extension = extension.lstrip(".") or "yaml"
        self._format = self.extension.lower()

    def annotated_path(self, image_path: Path) -> Path:
        return self.output_directory / f"{image_path.stem}.annotated.png"

    def sidecar_path(self, image_path: Path) -> Path:
        return self.output_directory / f"{image_path.stem}.{self.extension}"

    def write(
        self,
        image_path: Path,
        result: ProcessingResult,
        *,
        model: str | None = None,
    ) -> tuple[Path, Path]:
        self.output_directory.mkdir(parents=True, exist_ok=True)

        annotated_path = self.annotated_path(image_path)
        result.inference_output.annotated_image.save(annotated_path, format="PNG")

        report = build_report(image_path, result, model=model)
        report["annotated_image"] = str(annotated_path)
        if self._format == "json":
            payload = json.dumps(report, indent=2, ensure_ascii=True) + "\n"
        else:
            payload = yaml.safe_dump(report, sort_keys=False, allow_unicode=False)

        sidecar_path = self.sidecar_path(image_path)
        sidecar_path.write_text(payload, encoding="utf-8")
        return annotated_path, sidecar_path
