"""Persistence map used to tell fixed UI glyphs apart from a moving finger."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .config import StationaryConfig
from .models import Candidate
from .utils import distance


@dataclass
class StationaryEntry:
    x: float
    y: float
    frame_count: int
    last_seen_frame: int


class StationaryTracker:
    """Count how long blobs keep reappearing in the same grid cell.

    A finger dragging the indicator leaves every cell after a frame or two,
    while an on-screen menu button keeps the same cell for as long as it is
    visible.  Entries that are not refreshed within ``decay_frames`` are
    forgotten so a spot the finger passed through long ago does not count.
    """

    def __init__(self, config: Optional[StationaryConfig] = None) -> None:
        self.config = config or StationaryConfig()
        self._entries: Dict[Tuple[int, int], StationaryEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[StationaryEntry]:
        return list(self._entries.values())

    def key(self, x: float, y: float) -> Tuple[int, int]:
        size = self.config.grid_size
        return (math.floor(x / size), math.floor(y / size))

    def reset(self) -> None:
        self._entries.clear()

    def update(self, candidates: Iterable[Candidate], frame_index: int) -> None:
        for candidate in candidates:
            key = self.key(candidate.x, candidate.y)
            entry = self._entries.get(key)
            if entry is not None and distance(candidate.x, candidate.y, entry.x, entry.y) < self.config.grid_size:
                entry.frame_count += 1
                entry.last_seen_frame = frame_index
            else:
                self._entries[key] = StationaryEntry(candidate.x, candidate.y, 1, frame_index)

        expired = [
            key
            for key, entry in self._entries.items()
            if frame_index - entry.last_seen_frame > self.config.decay_frames
        ]
        for key in expired:
            del self._entries[key]

    def entry_at(self, x: float, y: float) -> Optional[StationaryEntry]:
        return self._entries.get(self.key(x, y))

    def is_stationary(self, x: float, y: float) -> bool:
        entry = self.entry_at(x, y)
        return entry is not None and entry.frame_count >= self.config.threshold

    def is_hard_stationary(self, x: float, y: float) -> bool:
        entry = self.entry_at(x, y)
        limit = self.config.threshold * self.config.hard_multiplier
        return entry is not None and entry.frame_count >= limit


__all__ = ["StationaryEntry", "StationaryTracker"]
