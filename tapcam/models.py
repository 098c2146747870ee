"""Plain data types shared by the detection and camera stages."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .utils import round_px


class AnimationKind(str, Enum):
    RIPPLE = "ripple"
    PULSE = "pulse"
    GLOW = "glow"
    RING = "ring"
    DOT = "dot"
    NONE = "none"


@dataclass(frozen=True)
class Candidate:
    """A disc-like blob found in one sampled frame."""

    x: float
    y: float
    radius: float
    brightness: float
    pixel_count: int
    circularity: float

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class TrackPoint:
    """One sampled frame of the indicator track; ``x is None`` marks a lost frame."""

    frame: int
    time: float
    x: Optional[float] = None
    y: Optional[float] = None
    radius: Optional[float] = None
    brightness: float = 0.0
    circularity: float = 0.0

    @property
    def lost(self) -> bool:
        return self.x is None or self.y is None

    @classmethod
    def from_candidate(cls, frame: int, time: float, candidate: Optional[Candidate]) -> "TrackPoint":
        if candidate is None:
            return cls(frame=frame, time=time)
        return cls(
            frame=frame,
            time=time,
            x=candidate.x,
            y=candidate.y,
            radius=candidate.radius,
            brightness=candidate.brightness,
            circularity=candidate.circularity,
        )


@dataclass(frozen=True)
class TapEvent:
    time: float
    x: int
    y: int
    radius: Optional[int] = None
    animation: AnimationKind = AnimationKind.RIPPLE
    zoom_level: Optional[float] = None
    source: str = "detected"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "x": self.x,
            "y": self.y,
            "radius": self.radius,
            "animation": self.animation.value,
            "zoomLevel": self.zoom_level,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TapEvent":
        radius = data.get("radius")
        zoom = data.get("zoomLevel", data.get("zoom_level"))
        return cls(
            time=float(data["time"]),
            x=round_px(float(data["x"])),
            y=round_px(float(data["y"])),
            radius=round_px(float(radius)) if radius is not None else None,
            animation=AnimationKind(data.get("animation") or AnimationKind.RIPPLE.value),
            zoom_level=float(zoom) if zoom is not None else None,
            source=str(data.get("source", "detected")),
        )


@dataclass(frozen=True)
class CalibrationPoint:
    x: float
    y: float
    radius: float = 40.0


@dataclass
class CalibrationHints:
    """User hints: where the indicator starts and which static glyph to ignore."""

    target: Optional[CalibrationPoint] = None
    exclude: Optional[CalibrationPoint] = None

    @property
    def is_empty(self) -> bool:
        return self.target is None and self.exclude is None


@dataclass(frozen=True)
class CameraPose:
    x: float
    y: float
    zoom: float

    def crop_rect(self, width: float, height: float) -> Tuple[float, float, float, float]:
        """Return ``(left, top, w, h)`` of the source region visible at this pose."""

        view_w = width / self.zoom
        view_h = height / self.zoom
        left = max(0.0, min(self.x - view_w / 2.0, width - view_w))
        top = max(0.0, min(self.y - view_h / 2.0, height - view_h))
        return left, top, view_w, view_h


@dataclass(frozen=True)
class Keyframe:
    time: float
    x: float
    y: float
    zoom: float

    @property
    def pose(self) -> CameraPose:
        return CameraPose(x=self.x, y=self.y, zoom=self.zoom)

