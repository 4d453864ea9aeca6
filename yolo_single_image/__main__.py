"""Command line entry point for the YOLO single-image toolkit."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from PIL import Image

from . import AppConfig, DetectionController, SettingsStore
from .io.model_cache import ModelCache
from .io.sidecar import DetectionSidecarWriter
from .models.base import ModelDescriptor, ModelTask
from .models.registry import ModelRegistry
from .services.state import Failed
from .settings_store import resolve_cache_directory
from .utils.paths import collect_images

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run YOLO detection on single images.")
    parser.add_argument(
        "--input",
        "-i",
        type=Path,
        help="Image file or directory of images to process.",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Directory for annotated images and sidecars. Default: ./annotated",
    )
    parser.add_argument("--model", help="Catalog model name (or bundled model name).")
    parser.add_argument("--model-url", help="Download URL for a remote model file.")
    parser.add_argument(
        "--task",
        choices=[task.value for task in ModelTask],
        help="Override the task the model is loaded for.",
    )
    parser.add_argument("--config", type=Path, help="Settings file to use instead of the default.")
    parser.add_argument("--cache-dir", type=Path, help="Directory for downloaded models.")
    parser.add_argument(
        "--sidecar-format",
        choices=["yaml", "json"],
        help="Format of the detection sidecar files.",
    )
    parser.add_argument(
        "--list-models",
        action="store_true",
        help="Print available models and exit.",
    )
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Delete downloaded models and exit.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    return parser


def _resolve_descriptor(args: argparse.Namespace, config: AppConfig) -> ModelDescriptor:
    task = ModelTask(args.task) if args.task else None

    if args.model_url:
        name = args.model or Path(urlparse(args.model_url).path).stem
        return ModelDescriptor.remote(name, args.model_url, task or ModelTask.DETECT)

    name = args.model or config.default_model
    try:
        descriptor = ModelRegistry.get(name)
    except KeyError:
        logger.info("'%s' is not in the catalog; treating it as a bundled model.", name)
        return ModelDescriptor.local(name, task or ModelTask.DETECT)

    if task is not None and task is not descriptor.task:
        return ModelDescriptor(name=descriptor.name, task=task, source=descriptor.source)
    return descriptor


def _open_image(path: Path) -> Image.Image:
    with Image.open(path) as image:
        image.load()
        return image.copy()


def _process_path(
    controller: DetectionController,
    writer: DetectionSidecarWriter,
    path: Path,
    model_name: str,
) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "path": str(path),
        "detections": [],
        "annotated_image": None,
        "sidecar_path": None,
        "error": None,
    }
    try:
        image = _open_image(path)
    except OSError as exc:
        logger.warning("Cannot open %s: %s", path, exc)
        entry["error"] = f"Cannot open image: {exc}"
        return entry

    result = controller.select_image(image)
    if result is None:
        entry["error"] = controller.error_message or "Failed to process image"
        return entry

    annotated_path, sidecar_path = writer.write(path, result, model=model_name)
    entry["detections"] = [item.as_dict() for item in result.inference_output.detections]
    entry["annotated_image"] = str(annotated_path)
    entry["sidecar_path"] = str(sidecar_path)
    return entry


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    store = SettingsStore(args.config) if args.config else SettingsStore()
    config = store.load()
    if args.cache_dir:
        config.cache_directory = args.cache_dir
    if args.sidecar_format:
        config.sidecar_extension = args.sidecar_format
    ModelRegistry.register_from_config(config)

    if args.list_models:
        payload = [descriptor.as_dict() for descriptor in ModelRegistry.list_descriptors()]
        json.dump(payload, sys.stdout, indent=2)
        sys.stdout.write("\n")
        return

    if args.clear_cache:
        cache = ModelCache(resolve_cache_directory(config))
        removed = cache.clear()
        json.dump({"directory": str(cache.directory), "removed": removed}, sys.stdout, indent=2)
        sys.stdout.write("\n")
        return

    if args.input is None:
        parser.error("--input is required unless --list-models or --clear-cache is given.")

    try:
        descriptor = _resolve_descriptor(args, config)
        images = collect_images(
            args.input,
            recursive=config.recursive,
            include_hidden=config.include_hidden,
        )
    except (ValueError, FileNotFoundError) as exc:
        parser.error(str(exc))

    output_directory = args.output or config.output_directory or Path.cwd() / "annotated"
    writer = DetectionSidecarWriter(output_directory, extension=config.sidecar_extension)

    with DetectionController(config) as controller:
        state = controller.load_model(descriptor)
        if isinstance(state, Failed):
            json.dump(
                {"model": descriptor.as_dict(), "error": controller.error_message},
                sys.stdout,
                indent=2,
            )
            sys.stdout.write("\n")
            raise SystemExit(1)

        output = [
            _process_path(controller, writer, path, descriptor.name) for path in images
        ]
        controller.clear()

    json.dump({"model": descriptor.as_dict(), "results": output}, sys.stdout, indent=2)
    sys.stdout.write("\n")


if __name__ == "__main__":  # pragma: no cover
    main()
