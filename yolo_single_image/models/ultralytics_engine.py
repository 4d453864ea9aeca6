"""Inference engine backed by the Ultralytics YOLO runtime."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from PIL import Image

from ..utils.devices import detect_torch_device
from .base import (
    Detection,
    InferenceFailure,
    InferenceOutput,
    MaterializationError,
    ModelTask,
)

logger = logging.getLogger(__name__)

try:
    from ultralytics import YOLO
except Exception:  # pragma: no cover - optional dependency handling
    YOLO = None  # type: ignore[assignment]


class UltralyticsEngine:
    """A loaded YOLO model bound to one task."""

    def __init__(
        self,
        model: Any,
        *,
        task: ModelTask,
        model_path: str,
        device: str,
        confidence_threshold: float = 0.25,
        image_size: int = 640,
    ) -> None:
        self._model = model
        self._task = task
        self.model_path = model_path
        self.device = device
        self.confidence_threshold = confidence_threshold
        self.image_size = image_size

    @property
    def task(self) -> ModelTask:
        return self._task

    def infer(self, image: Image.Image) -> InferenceOutput | None:
        try:
            results = self._model.predict(
                source=image.convert("RGB"),
                conf=self.confidence_threshold,
                imgsz=self.image_size,
                device=self.device,
                verbose=False,
            )
        except Exception as exc:
            raise InferenceFailure(f"Inference with {self.model_path} failed: {exc}") from exc

        if not results:
            return None
        result = results[0]

        try:
            # plot() renders onto a BGR array.
            plotted = result.plot()
            annotated = Image.fromarray(plotted[..., ::-1].copy())
            detections = tuple(self._extract_detections(result))
        except Exception as exc:
            raise InferenceFailure(
                f"Could not read results from {self.model_path}: {exc}"
            ) from exc

        return InferenceOutput(
            annotated_image=annotated,
            detections=detections,
            task=self._task,
            speed=dict(getattr(result, "speed", None) or {}),
        )

    def _extract_detections(self, result: Any) -> list[Detection]:
        names = result.names or {}
        probs = getattr(result, "probs", None)
        if probs is not None:
            return [
                Detection(
                    label=str(names.get(int(class_id), class_id)),
                    confidence=float(confidence),
                    class_id=int(class_id),
                )
                for class_id, confidence in zip(probs.top5, probs.top5conf.tolist())
            ]

        boxes = getattr(result, "boxes", None)
        if boxes is None:
            return []

        detections: list[Detection] = []
        for xyxy, confidence, class_id in zip(
            boxes.xyxy.tolist(), boxes.conf.tolist(), boxes.cls.tolist()
        ):
            detections.append(
                Detection(
                    label=str(names.get(int(class_id), int(class_id))),
                    confidence=float(confidence),
                    class_id=int(class_id),
                    box=(xyxy[0], xyxy[1], xyxy[2], xyxy[3]),
                )
            )
        detections.sort(key=lambda item: item.confidence, reverse=True)
        return detections


class UltralyticsEngineFactory:
    """Materializes model files into :class:`UltralyticsEngine` instances."""

    def __init__(
        self,
        *,
        confidence_threshold: float = 0.25,
        image_size: int = 640,
        device: str = "auto",
    ) -> None:
        self.confidence_threshold = confidence_threshold
        self.image_size = image_size
        self.device_preference = device
        self._device: str | None = None

    @classmethod
    def from_config(cls, config: Any) -> UltralyticsEngineFactory:
        return cls(
            confidence_threshold=config.confidence_threshold,
            image_size=config.image_size,
            device=config.device,
        )

    def _resolve_device(self) -> str:
        if self._device is None:
            self._device, message = detect_torch_device(self.device_preference)
            logger.info("[YOLO] %s", message)
        return self._device

    def materialize(self, model_path: str | Path, task: ModelTask) -> UltralyticsEngine:
        if YOLO is None:
            raise MaterializationError(
                "The 'ultralytics' package is required to run YOLO models. "
                "Install it with `pip install ultralytics`."
            )

        path = str(model_path)
        logger.info("Loading %s model from %s", task.value, path)
        try:
            model = YOLO(path, task=task.value)
        except Exception as exc:
            raise MaterializationError(
                f"Could not load {path} as a {task.value} model: {exc}"
            ) from exc

        loaded_task = getattr(model, "task", None)
        if loaded_task and loaded_task != task.value:
            raise MaterializationError(
                f"{path} is a {loaded_task} model, not a {task.value} model."
            )

        return UltralyticsEngine(
            model,
            task=task,
            model_path=path,
            device=self._resolve_device(),
            confidence_threshold=self.confidence_threshold,
            image_size=self.image_size,
        )
