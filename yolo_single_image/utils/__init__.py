"""Utility helpers for the YOLO single-image toolkit."""

from .devices import detect_torch_device
from .paths import collect_images, is_image_file

__all__ = ["collect_images", "detect_torch_device", "is_image_file"]
