"""Locate input images for headless runs."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

IMAGE_EXTENSIONS = frozenset(
    {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tiff", ".tif", ".gif"}
)


def is_image_file(path: Path, *, extensions: Iterable[str] | None = None) -> bool:
    """Return True if ``path`` has one of the accepted image extensions."""
    accepted = IMAGE_EXTENSIONS if extensions is None else {ext.lower() for ext in extensions}
    return path.suffix.lower() in accepted


def _is_hidden(path: Path, root: Path) -> bool:
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        parts = (path.name,)
    return any(part.startswith(".") for part in parts)


def collect_images(
    target: Path,
    *,
    recursive: bool = False,
    include_hidden: bool = False,
) -> list[Path]:
    """Return the image files named by ``target``, sorted.

    ``target`` may be a single image or a directory. Dot-files, and files inside
    dot-directories, are skipped unless ``include_hidden`` is set.
    """
    target = target.expanduser()
    if not target.exists():
        raise FileNotFoundError(target)

    if target.is_file():
        if not is_image_file(target):
            return []
        if not include_hidden and target.name.startswith("."):
            return []
        return [target]

    candidates = target.rglob("*") if recursive else target.iterdir()
    images = [
        path
        for path in candidates
        if path.is_file()
        and is_image_file(path)
        and (include_hidden or not _is_hidden(path, target))
    ]
    return sorted(images)
