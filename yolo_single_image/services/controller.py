"""Application state controller: model loading and single-image inference."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from PIL import Image

from ..config import AppConfig
from ..io.model_cache import ModelCache, ModelCacheProtocol
from ..models.base import EngineFactory, InferenceEngine, ModelDescriptor, ModelError
from ..settings_store import resolve_cache_directory
from .preprocessing import ImageProcessingProtocol, ImageProcessingService
from .state import (
    ControllerSnapshot,
    Failed,
    Idle,
    Loaded,
    Loading,
    ModelLoadState,
    ProcessingResult,
)

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[ControllerSnapshot], None]


class DetectionController:
    """Owns the model loading state machine and the current image/result.

    Every mutation happens under one lock, observers only ever see immutable
    :class:`ControllerSnapshot` objects. Overlapping image processing calls are
    rejected rather than queued, and a result whose image or model was replaced
    while it ran is dropped.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        model_cache: ModelCacheProtocol | None = None,
        engine_factory: EngineFactory | None = None,
        processing_service: ImageProcessingProtocol | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self._model_cache = model_cache or ModelCache(
            resolve_cache_directory(self.config),
            timeout=self.config.download_timeout,
        )
        if engine_factory is None:
            from ..models.ultralytics_engine import UltralyticsEngineFactory

            engine_factory = UltralyticsEngineFactory.from_config(self.config)
        self._engine_factory = engine_factory
        self._processing_service = processing_service or ImageProcessingService()

        self._lock = threading.RLock()
        self._busy = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="yolo-inference")
        self._subscribers: list[SnapshotCallback] = []
        self._version = 0
        self._dispatching = False

        self._state: ModelLoadState = Idle()
        self._current_model: ModelDescriptor | None = None
        self._selected_image: Image.Image | None = None
        self._processing_result: ProcessingResult | None = None
        self._is_processing = False
        self._error_message: str | None = None
        self._load_generation = 0

    # ----- Observable state -----------------------------------------------

    @property
    def state(self) -> ModelLoadState:
        with self._lock:
            return self._state

    @property
    def current_model(self) -> ModelDescriptor | None:
        with self._lock:
            return self._current_model

    @property
    def selected_image(self) -> Image.Image | None:
        with self._lock:
            return self._selected_image

    @property
    def processing_result(self) -> ProcessingResult | None:
        with self._lock:
            return self._processing_result

    @property
    def is_processing(self) -> bool:
        with self._lock:
            return self._is_processing

    @property
    def error_message(self) -> str | None:
        with self._lock:
            return self._error_message

    def snapshot(self) -> ControllerSnapshot:
        with self._lock:
            return ControllerSnapshot(
                model_state=self._state,
                current_model=self._current_model,
                selected_image=self._selected_image,
                processing_result=self._processing_result,
                is_processing=self._is_processing,
                error_message=self._error_message,
            )

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        """Call ``callback`` with a fresh snapshot after every change."""
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    def _notify(self) -> None:
        """Deliver the newest snapshot to every subscriber.

        Only one thread delivers at a time. Changes made while a delivery is
        running are picked up by that thread before it stops, so the last
        snapshot each observer sees always matches the current state.
        """
        with self._lock:
            self._version += 1
            if self._dispatching:
                return
            self._dispatching = True

        delivered = 0
        try:
            while True:
                with self._lock:
                    if delivered == self._version:
                        self._dispatching = False
                        return
                    delivered = self._version
                    subscribers = list(self._subscribers)
                    snapshot = self.snapshot()
                for callback in subscribers:
                    try:
                        callback(snapshot)
                    except Exception:
                        logger.exception("State observer %r failed", callback)
        except BaseException:
            with self._lock:
                self._dispatching = False
            raise

    # ----- Model management -----------------------------------------------

    def load_model(self, descriptor: ModelDescriptor) -> ModelLoadState:
        """Resolve, fetch if needed and materialize ``descriptor``.

        Always leaves the call in ``Loaded`` or ``Failed``. When a newer call
        started while this one was running, its outcome is discarded.
        """
        with self._lock:
            self._load_generation += 1
            generation = self._load_generation
            self._state = Loading()
            self._error_message = None
            self._current_model = descriptor
        self._notify()

        logger.info("Loading model '%s' (%s)", descriptor.name, descriptor.task.value)
        try:
            engine = self._materialize(descriptor)
        except Exception as exc:
            logger.warning("Model '%s' failed to load: %s", descriptor.name, exc)
            outcome: ModelLoadState = Failed(exc)
            message: str | None = f"Failed to load model: {exc}"
        else:
            logger.info("Model '%s' ready.", descriptor.name)
            outcome = Loaded(engine)
            message = None

        with self._lock:
            if generation != self._load_generation:
                logger.info("Discarding superseded load of '%s'", descriptor.name)
                return self._state
            self._state = outcome
            self._error_message = message
        self._notify()
        return outcome

    def _materialize(self, descriptor: ModelDescriptor) -> InferenceEngine:
        extension = self.config.model_extension
        if descriptor.is_remote:
            file_name = descriptor.file_name(extension)
            model_path = self._model_cache.cached_path(file_name)
            if model_path is None:
                model_path = self._model_cache.fetch(descriptor.url or "", file_name)
            else:
                logger.debug("Using cached model %s", model_path)
        else:
            model_path = self._resolve_bundled(descriptor)
        return self._engine_factory.materialize(model_path, descriptor.task)

    def _resolve_bundled(self, descriptor: ModelDescriptor) -> Path | str:
        file_name = descriptor.file_name(self.config.model_extension)
        bundle_directory = self.config.bundle_directory
        if bundle_directory is not None:
            candidate = bundle_directory.expanduser() / file_name
            if candidate.is_file():
                return candidate
            logger.debug("%s not found in %s; resolving by name", file_name, bundle_directory)
        # Bare names let the engine resolve official weights itself.
        return file_name

    # ----- Image processing -----------------------------------------------

    def select_image(self, image: Image.Image) -> ProcessingResult | None:
        """Replace the current image, drop the old result and process it."""
        if not self._busy.acquire(blocking=False):
            logger.warning("Image selection ignored: another image is still processing.")
            return None
        try:
            with self._lock:
                self._selected_image = image
                self._processing_result = None
            self._notify()
            return self._run_processing()
        finally:
            self._busy.release()

    def process_image(self) -> ProcessingResult | None:
        """Run inference on the selected image; a no-op unless a model is loaded."""
        if not self._busy.acquire(blocking=False):
            logger.warning("Processing request ignored: another image is still processing.")
            return None
        try:
            return self._run_processing()
        finally:
            self._busy.release()

    def _run_processing(self) -> ProcessingResult | None:
        with self._lock:
            image = self._selected_image
            state = self._state
            if image is None or not isinstance(state, Loaded):
                return None
            self._is_processing = True
            self._error_message = None
        self._notify()

        result: ProcessingResult | None = None
        message: str | None = None
        try:
            future = self._executor.submit(
                self._processing_service.process_image, image, state.engine
            )
            result = future.result()
        except ModelError as exc:
            logger.warning("Image processing failed: %s", exc)
            message = f"Failed to process image: {exc}"
        except Exception as exc:
            logger.exception("Unexpected failure while processing image")
            message = f"Failed to process image: {exc}"
        finally:
            with self._lock:
                self._is_processing = False
                stale = self._selected_image is not image or self._state is not state
                if stale:
                    logger.info("Discarding result: image or model changed during processing.")
                    result = None
                else:
                    self._processing_result = result
                    if result is None:
                        self._error_message = message or "Failed to process image"
        self._notify()
        return result

    def clear(self) -> None:
        """Forget the image, result and error; the loaded model stays."""
        with self._lock:
            self._selected_image = None
            self._processing_result = None
            self._error_message = None
        self._notify()

    # ----- Lifecycle ------------------------------------------------------

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> DetectionController:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
