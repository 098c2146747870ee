"""Pick the touch indicator among the candidates of one frame.

A touch indicator and a nearby fixed menu glyph look the same in a single
frame, so the choice leans on temporal behaviour: candidates sitting in a
long-lived stationary zone are penalised or dropped, candidates that agree
with the recent trajectory or stay close to the last accepted position are
boosted, and user calibration nudges the result either way.  Every path that
needs a selection (the full detection pass and any live overlay) goes through
:class:`CandidateSelector` so the scoring cannot drift apart.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from .config import SelectorConfig
from .models import CalibrationHints, Candidate
from .stationary import StationaryTracker
from .trajectory import TrajectoryTracker
from .utils import distance_to

Point = Tuple[float, float]


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: Candidate
    score: float


class CandidateSelector:
    def __init__(self, config: Optional[SelectorConfig] = None) -> None:
        self.config = config or SelectorConfig()

    def score(
        self,
        candidate: Candidate,
        last_position: Optional[Point],
        trajectory: TrajectoryTracker,
        stationary: StationaryTracker,
        calibration: Optional[CalibrationHints] = None,
    ) -> Optional[float]:
        """Score ``candidate``; ``None`` means it is rejected outright."""

        cfg = self.config
        x, y = candidate.x, candidate.y
        score = float(candidate.pixel_count)

        in_zone = stationary.is_stationary(x, y)
        if in_zone:
            if stationary.is_hard_stationary(x, y):
                return None
            score *= cfg.stationary_penalty

        exclude = calibration.exclude if calibration is not None else None
        if exclude is not None:
            hard = max(cfg.exclude_hard_radius, exclude.radius)
            soft = max(cfg.exclude_soft_radius, 2.0 * hard)
            dist = distance_to(x, y, (exclude.x, exclude.y))
            if dist < hard:
                return None
            if dist < soft:
                score *= cfg.exclude_penalty

        predicted = trajectory.predict()
        if predicted is not None and trajectory.velocity().magnitude > cfg.min_velocity:
            dist = distance_to(x, y, predicted)
            if dist < cfg.prediction_near:
                score *= cfg.prediction_near_bonus
            elif dist < cfg.prediction_mid:
                score *= cfg.prediction_mid_bonus
            elif dist > cfg.prediction_far:
                # jumping off the trajectory onto static UI
                if in_zone:
                    return None
                score *= cfg.prediction_far_penalty

        if last_position is not None:
            dist = distance_to(x, y, last_position)
            if dist < cfg.continuity_near:
                score *= cfg.continuity_near_bonus
            elif dist < cfg.continuity_mid:
                score *= cfg.continuity_mid_bonus
            elif dist > cfg.continuity_jump and in_zone:
                return None

        target = calibration.target if calibration is not None else None
        if target is not None:
            radius = max(cfg.target_radius, target.radius)
            if distance_to(x, y, (target.x, target.y)) < radius:
                score *= cfg.target_bonus

        return score

    def rank(
        self,
        candidates: Sequence[Candidate],
        last_position: Optional[Point],
        trajectory: TrajectoryTracker,
        stationary: StationaryTracker,
        calibration: Optional[CalibrationHints] = None,
    ) -> List[ScoredCandidate]:
        """Surviving candidates with their scores, best first (stable for ties)."""

        scored: List[ScoredCandidate] = []
        for candidate in candidates:
            value = self.score(candidate, last_position, trajectory, stationary, calibration)
            if value is not None:
                scored.append(ScoredCandidate(candidate, value))
        scored.sort(key=lambda item: item.score, reverse=True)
        return scored

    def select(
        self,
        candidates: Sequence[Candidate],
        last_position: Optional[Point],
        trajectory: TrajectoryTracker,
        stationary: StationaryTracker,
        calibration: Optional[CalibrationHints] = None,
        frame_index: int = 0,
    ) -> Optional[Candidate]:
        if not candidates:
            return None
        ranked = self.rank(candidates, last_position, trajectory, stationary, calibration)
        if not ranked or ranked[0].score <= 0.0:
            logger.debug("Frame {}: all {} candidates rejected", frame_index, len(candidates))
            return None
        return ranked[0].candidate


__all__ = ["CandidateSelector", "ScoredCandidate"]
