"""Model cache and result persistence."""

from .model_cache import (
    InvalidURLError,
    ModelCache,
    ModelCacheError,
    ModelCacheProtocol,
    TransferError,
    UnsupportedFormatError,
    WriteError,
)
from .sidecar import DetectionSidecarWriter, build_report

__all__ = [
    "DetectionSidecarWriter",
    "InvalidURLError",
    "ModelCache",
    "ModelCacheError",
    "ModelCacheProtocol",
    "TransferError",
    "UnsupportedFormatError",
    "WriteError",
    "build_report",
]
