"""Full detection pass: sample frames, track the indicator, emit taps."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from loguru import logger
from tqdm import tqdm

from .config import AppConfig
from .io import FrameSource, FrameSourceError
from .models import CalibrationHints, TapEvent, TrackPoint
from .session import DetectionSession
from .stationary import StationaryEntry
from .taps import apply_tap_settings, cluster_taps, synthesize_taps
from .utils import time_grid

ProgressCallback = Callable[[float], None]

# share of the progress bar spent on the frame loop, then after synthesis
_FRAMES_SHARE = 60.0
_SYNTH_DONE = 80.0


@dataclass
class DetectionOutput:
    taps: List[TapEvent]
    raw_taps: List[TapEvent]
    track: List[TrackPoint]
    frames_processed: int
    completed: bool
    stationary_zones: List[StationaryEntry]

    @property
    def lost_frames(self) -> int:
        return sum(1 for point in self.track if point.lost)


def sample_times(duration: float, fps: float) -> List[float]:
    return time_grid(duration, fps)


def run_detection(
    source: FrameSource,
    config: Optional[AppConfig] = None,
    calibration: Optional[CalibrationHints] = None,
    progress: Optional[ProgressCallback] = None,
    should_continue: Optional[Callable[[], bool]] = None,
    show_progress: bool = False,
) -> DetectionOutput:
    """Track the touch indicator through ``source`` and return tap events.

    Frames are processed one at a time in time order.  ``should_continue`` is
    polled before each frame; when it returns ``False`` the pass stops and
    the taps found so far are returned with ``completed=False``.  Frame
    source failures propagate.
    """

    cfg = config or AppConfig()
    session = DetectionSession(cfg, calibration)
    times = sample_times(source.duration, cfg.sampling.fps)
    if not times:
        logger.warning("Nothing to sample (duration={:.3f}s); no taps detected", source.duration)
        if progress is not None:
            progress(100.0)
        return DetectionOutput([], [], [], 0, True, [])

    logger.info("Detecting taps over {} frames ({:.2f}s at {:.1f} fps)", len(times), source.duration, cfg.sampling.fps)
    track: List[TrackPoint] = []
    completed = True
    with tqdm(total=len(times), desc="detect", unit="frame", leave=False, disable=not show_progress) as bar:
        for index, time in enumerate(times):
            if should_continue is not None and not should_continue():
                logger.info("Detection stopped after {} of {} frames", index, len(times))
                completed = False
                break
            try:
                pixels = source.frame_at(time)
            except FrameSourceError as exc:
                logger.error("Frame at {:.3f}s unavailable: {}", time, exc)
                raise
            _, selected = session.process_frame(pixels)
            track.append(TrackPoint.from_candidate(index, time, selected))
            bar.update(1)
            if progress is not None:
                progress((index + 1) / len(times) * _FRAMES_SHARE)

    raw = synthesize_taps(track, cfg.taps)
    if progress is not None:
        progress(_SYNTH_DONE)
    clustered = cluster_taps(raw, cfg.taps)
    taps = apply_tap_settings(clustered, cfg.taps.animation, cfg.taps.zoom_level)
    if progress is not None:
        progress(100.0)

    output = DetectionOutput(
        taps=taps,
        raw_taps=raw,
        track=track,
        frames_processed=len(track),
        completed=completed,
        stationary_zones=session.stationary.entries,
    )
    logger.info(
        "Detected {} frames ({} lost), {} movement stops, {} taps",
        output.frames_processed,
        output.lost_frames,
        len(raw),
        len(taps),
    )
    logger.debug("Identified {} stationary positions (potential menu buttons)", len(output.stationary_zones))
    return output


__all__ = ["DetectionOutput", "run_detection", "sample_times"]
