"""Frame sources and on-disk formats for taps, tracks and keyframes."""
from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import List, Protocol, Sequence

import cv2
import numpy as np
from loguru import logger

from .models import Keyframe, TapEvent, TrackPoint


class FrameSourceError(RuntimeError):
    pass


class FrameSource(Protocol):
    width: int
    height: int
    duration: float

    def frame_at(self, time: float) -> np.ndarray:
        """Return the RGBA frame shown at ``time`` seconds, blocking until decoded."""


class VideoFrameSource:
    """Seekable RGBA frames from a video file via OpenCV."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._cap = cv2.VideoCapture(str(self.path))
        if not self._cap.isOpened():
            raise FrameSourceError(f"Unable to open video: {self.path}")
        self.width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
        self.height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
        self.fps = float(self._cap.get(cv2.CAP_PROP_FPS) or 0.0)
        frame_count = int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0)
        self.duration = frame_count / self.fps if self.fps > 0 else 0.0
        logger.debug(
            "Opened {} ({}x{}, fps={:.2f}, duration={:.2f}s)", self.path, self.width, self.height, self.fps, self.duration
        )

    def frame_at(self, time: float) -> np.ndarray:
        if self._cap is None:
            raise FrameSourceError(f"Video already closed: {self.path}")
        if not self._cap.set(cv2.CAP_PROP_POS_MSEC, max(0.0, time) * 1000.0):
            raise FrameSourceError(f"Seek to {time:.3f}s failed in {self.path}")
        ok, frame = self._cap.read()
        if not ok or frame is None:
            raise FrameSourceError(f"Could not decode frame at {time:.3f}s from {self.path}")
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def __enter__(self) -> "VideoFrameSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class ArrayFrameSource:
    """Frames already in memory, sampled at a fixed frame rate."""

    def __init__(self, frames: Sequence[np.ndarray], fps: float) -> None:
        if fps <= 0:
            raise ValueError("fps must be positive")
        self.frames = list(frames)
        self.fps = float(fps)
        first = self.frames[0] if self.frames else np.zeros((0, 0, 4), dtype=np.uint8)
        self.height, self.width = int(first.shape[0]), int(first.shape[1])
        self.duration = len(self.frames) / self.fps

    def frame_at(self, time: float) -> np.ndarray:
        index = int(time * self.fps + 1e-6)
        if index < 0 or index >= len(self.frames):
            raise FrameSourceError(f"No frame at {time:.3f}s (have {len(self.frames)} frames)")
        return self.frames[index]


def write_taps(path: Path, taps: Sequence[TapEvent]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([tap.to_dict() for tap in taps], indent=2), encoding="utf-8")


def read_taps(path: Path) -> List[TapEvent]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict) and "taps" in data:
        data = data["taps"]
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a list of tap events")
    return [TapEvent.from_dict(item) for item in data]


def write_track(csv_path: Path, track: Sequence[TrackPoint]) -> None:
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["frame", "time", "x", "y", "radius", "brightness", "circularity"])
        for point in track:
            if point.lost:
                writer.writerow([point.frame, f"{point.time:.3f}", "", "", "", "", ""])
                continue
            writer.writerow(
                [
                    point.frame,
                    f"{point.time:.3f}",
                    f"{point.x:.2f}",
                    f"{point.y:.2f}",
                    f"{point.radius:.2f}" if point.radius is not None else "",
                    f"{point.brightness:.2f}",
                    f"{point.circularity:.4f}",
                ]
            )


def write_keyframes(csv_path: Path, keyframes: Sequence[Keyframe]) -> None:
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["time", "x", "y", "zoom"])
        for kf in keyframes:
            writer.writerow([f"{kf.time:.4f}", f"{kf.x:.3f}", f"{kf.y:.3f}", f"{kf.zoom:.5f}"])

