"""Shared fixtures for the tap camera test suite."""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Tuple

import cv2
import numpy as np
import pytest

from tapcam.config import AppConfig
from tapcam.models import TapEvent

GLYPH_GREY = (160, 160, 160, 255)

Disc = Tuple[int, int, int]


@pytest.fixture
def default_config() -> AppConfig:
    """Return a default AppConfig with no file."""
    return AppConfig()


@pytest.fixture
def disc_frame() -> Callable[..., np.ndarray]:
    """Factory for black RGBA frames with grey filled discs drawn on them."""

    def make(discs: Iterable[Disc] = (), width: int = 400, height: int = 400, colour=GLYPH_GREY) -> np.ndarray:
        frame = np.zeros((height, width, 4), dtype=np.uint8)
        frame[:, :, 3] = 255
        for x, y, r in discs:
            cv2.circle(frame, (int(x), int(y)), int(r), colour, -1)
        return frame

    return make


@pytest.fixture
def sample_taps() -> list[TapEvent]:
    """A few well separated taps in time order."""
    return [
        TapEvent(time=1.0, x=300, y=400, radius=30),
        TapEvent(time=4.0, x=800, y=1500, radius=30),
        TapEvent(time=7.5, x=540, y=200, radius=28),
    ]


@pytest.fixture
def sample_yaml(tmp_path: Path) -> Path:
    """Write a minimal config.yaml and return its path."""
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "paths:\n"
        "  video: demo.mp4\n"
        f"  output_dir: {(tmp_path / 'results').as_posix()}\n"
        "sampling:\n"
        "  fps: 5\n"
        "taps:\n"
        "  animation: ripple\n"
        "  cluster_distance: 60\n"
        "camera:\n"
        "  max_zoom: 2.0\n"
    )
    return cfg


@pytest.fixture
def scripted_frames(disc_frame) -> list[np.ndarray]:
    """Indicator slides from (50, 50) to (250, 250), rests three frames, then lifts."""
    frames = [disc_frame([(50 + 50 * i, 50 + 50 * i, 30)]) for i in range(5)]
    frames += [disc_frame([(250, 250, 30)]) for _ in range(3)]
    frames += [disc_frame() for _ in range(22)]
    return frames


@pytest.fixture
def scripted_video(tmp_path: Path, scripted_frames) -> Path:
    """The scripted frames encoded as a 10 fps MJPG AVI."""
    path = tmp_path / "scripted.avi"
    height, width = scripted_frames[0].shape[:2]
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10, (width, height))
    assert writer.isOpened()
    for frame in scripted_frames:
        writer.write(cv2.cvtColor(frame, cv2.COLOR_RGBA2BGR))
    writer.release()
    return path
