"""Helpers for selecting the accelerator handed to the inference engine."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

logger = logging.getLogger(__name__)

try:  # Installed alongside ultralytics; a broken install still falls back to CPU.
    import torch
except Exception:  # pragma: no cover - optional dependency
    torch = None  # type: ignore[assignment]

Probe = Callable[[str], Optional[Tuple[str, str]]]


def _probe_cuda(pref: str) -> Optional[Tuple[str, str]]:
    if not torch.cuda.is_available():
        return None
    if pref.startswith("cuda:"):
        index = int(pref.split(":", 1)[1])
    else:
        index = torch.cuda.current_device()
    return f"cuda:{index}", f"CUDA device detected: {torch.cuda.get_device_name(index)}"


def _probe_mps(pref: str) -> Optional[Tuple[str, str]]:
    backend = getattr(torch.backends, "mps", None)
    if backend is None or not backend.is_available():
        return None
    return "mps", "Apple MPS backend detected."


def _probe_xpu(pref: str) -> Optional[Tuple[str, str]]:
    xpu = getattr(torch, "xpu", None)
    if xpu is None or not xpu.is_available():
        return None
    return "xpu", "Intel XPU backend detected."


# Probe order doubles as the "auto" priority.
_PROBES: Tuple[Tuple[str, Probe], ...] = (
    ("cuda", _probe_cuda),
    ("mps", _probe_mps),
    ("xpu", _probe_xpu),
)


def detect_torch_device(preference: str = "auto") -> Tuple[str, str]:
    """Pick the device string passed to ``predict``.

    ``preference`` is ``auto``, ``cpu``, ``cuda``, ``cuda:N``, ``mps`` or
    ``xpu``. Unknown values are treated as ``auto``.

    Returns
    -------
    tuple[str, str]
        ``(device_string, message)`` where ``message`` explains the choice.
    """

    pref = (preference or "auto").strip().lower()
    if pref == "cpu":
        return "cpu", "CPU execution requested."
    if torch is None:
        return "cpu", "PyTorch is not installed; using CPU execution."

    backend = pref.split(":", 1)[0]
    if pref != "auto" and backend not in {name for name, _ in _PROBES}:
        logger.warning("Unknown device preference %r; probing automatically.", preference)
        pref = backend = "auto"

    for name, probe in _PROBES:
        if backend not in ("auto", name):
            continue
        selected = probe(pref)
        if selected is not None:
            return selected

    if pref != "auto":
        return "cpu", f"Requested device '{pref}' is unavailable; using CPU."
    return "cpu", "No GPU accelerator detected; using CPU."
