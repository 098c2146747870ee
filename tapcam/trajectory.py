"""Short position history giving velocity and a one-frame-ahead prediction."""
from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Tuple


@dataclass(frozen=True)
class TrackSample:
    x: float
    y: float
    frame: int


@dataclass(frozen=True)
class Velocity:
    x: float = 0.0
    y: float = 0.0

    @property
    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)


class TrajectoryTracker:
    def __init__(self, max_history: int = 10) -> None:
        self.max_history = int(max(3, max_history))
        self._history: Deque[TrackSample] = deque(maxlen=self.max_history)

    def __len__(self) -> int:
        return len(self._history)

    @property
    def history(self) -> List[TrackSample]:
        return list(self._history)

    def add(self, x: float, y: float, frame: int) -> None:
        self._history.append(TrackSample(float(x), float(y), int(frame)))

    def reset(self) -> None:
        self._history.clear()

    def velocity(self) -> Velocity:
        """Central difference over the last three accepted samples, in px/sample."""

        if len(self._history) < 3:
            return Velocity()
        first, _, last = list(self._history)[-3:]
        return Velocity((last.x - first.x) / 2.0, (last.y - first.y) / 2.0)

    def predict(self) -> Optional[Tuple[float, float]]:
        if len(self._history) < 2:
            return None
        velocity = self.velocity()
        last = self._history[-1]
        return (last.x + velocity.x, last.y + velocity.y)


__all__ = ["TrackSample", "TrajectoryTracker", "Velocity"]
