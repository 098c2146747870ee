"""Per-video tracking state threaded through the detection pipeline."""
from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np
from loguru import logger

from .candidates import find_candidates
from .config import AppConfig
from .models import CalibrationHints, CalibrationPoint, Candidate
from .selector import CandidateSelector
from .stationary import StationaryTracker
from .trajectory import TrajectoryTracker


class DetectionSession:
    """Owns the stationary map, trajectory and calibration for one video.

    Frames must be fed strictly in sampling order; a new video (or a rerun of
    the same one) needs a fresh session or :meth:`reset`.
    """

    def __init__(self, config: Optional[AppConfig] = None, calibration: Optional[CalibrationHints] = None) -> None:
        self.config = config or AppConfig()
        self.calibration = calibration or CalibrationHints()
        self.stationary = StationaryTracker(self.config.stationary)
        self.trajectory = TrajectoryTracker(self.config.trajectory.history)
        self.selector = CandidateSelector(self.config.selector)
        self.last_position: Optional[Tuple[float, float]] = None
        self.frame_index = 0

    def set_calibration(
        self,
        target: Optional[CalibrationPoint] = None,
        exclude: Optional[CalibrationPoint] = None,
    ) -> None:
        self.calibration = CalibrationHints(target=target, exclude=exclude)
        logger.debug("Calibration set - target: {} exclude: {}", target, exclude)

    def clear_calibration(self) -> None:
        self.calibration = CalibrationHints()

    def reset(self) -> None:
        self.stationary.reset()
        self.trajectory.reset()
        self.last_position = None
        self.frame_index = 0

    def process(self, candidates: List[Candidate]) -> Optional[Candidate]:
        """Advance one frame with this frame's candidates and return the tracked one."""

        frame = self.frame_index
        self.stationary.update(candidates, frame)
        selected = self.selector.select(
            candidates,
            self.last_position,
            self.trajectory,
            self.stationary,
            self.calibration,
            frame,
        )
        if selected is not None:
            self.trajectory.add(selected.x, selected.y, frame)
            self.last_position = (selected.x, selected.y)
        self.frame_index += 1
        return selected

    def process_frame(self, pixels: np.ndarray) -> Tuple[List[Candidate], Optional[Candidate]]:
        candidates = find_candidates(pixels, self.config.detector)
        return candidates, self.process(candidates)


__all__ = ["DetectionSession"]
