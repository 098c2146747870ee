"""Tap detection and camera choreography for screen recordings.

The top-level names are imported on first use so that ``import tapcam``
stays cheap for the CLI and does not pull in OpenCV until a frame source or
the detector is needed.
"""

from importlib import import_module
from typing import TYPE_CHECKING, Any

_EXPORTS = {
    "AppConfig": "config",
    "load_config": "config",
    "TapEvent": "models",
    "find_candidates": "candidates",
    "DetectionSession": "session",
    "synthesize_taps": "taps",
    "cluster_taps": "taps",
    "run_detection": "detect",
    "CameraEngine": "camera",
    "VideoFrameSource": "io",
}

__all__ = sorted(_EXPORTS)

if TYPE_CHECKING:  # pragma: no cover - for static type checkers only
    from .camera import CameraEngine
    from .candidates import find_candidates
    from .config import AppConfig, load_config
    from .detect import run_detection
    from .io import VideoFrameSource
    from .models import TapEvent
    from .session import DetectionSession
    from .taps import cluster_taps, synthesize_taps


def __getattr__(name: str) -> Any:
    module = _EXPORTS.get(name)
    if module is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    value = getattr(import_module(f".{module}", __name__), name)
    globals()[name] = value
    return value
