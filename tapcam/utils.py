"""Utility helpers used across pipeline stages."""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from statistics import mean, median
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from .models import TapEvent


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def round_px(value: float) -> int:
    # half-up, so 12.5 -> 13 like the positions shown in the editor
    return int(math.floor(value + 0.5))


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(ax - bx, ay - by)


def distance_to(x: float, y: float, point: Optional[Tuple[float, float]]) -> float:
    """Distance to ``point``; infinite when there is no point to compare with."""

    if point is None:
        return math.inf
    return distance(x, y, point[0], point[1])


@dataclass
class PipelineReport:
    """Last run of each ``tapcam`` command in one output directory.

    Saved as ``report.json`` with a ``report.md`` rendering next to it.
    """

    path: Path
    sections: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def load(cls, output_dir: Path) -> "PipelineReport":
        path = Path(output_dir) / "report.json"
        sections = json.loads(path.read_text(encoding="utf-8")) if path.exists() else {}
        return cls(path=path, sections=sections)

    def record(self, command: str, payload: Dict[str, Any]) -> None:
        self.sections[command] = dict(payload)
        self.save()

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self.sections, indent=2), encoding="utf-8")
        self.path.with_suffix(".md").write_text(self.to_markdown(), encoding="utf-8")

    def to_markdown(self) -> str:
        lines = ["# Tap Camera Report", ""]
        if not self.sections:
            lines.append("No commands have run yet.")
        for command, payload in self.sections.items():
            lines += [f"## tapcam {command}", "", "| Field | Value |", "| --- | --- |"]
            lines += [f"| {key} | {value} |" for key, value in payload.items()]
            lines.append("")
        return "\n".join(lines)


def summary_stats(taps: Sequence[TapEvent]) -> dict:
    if not taps:
        return {"count": 0, "first_time": 0.0, "last_time": 0.0, "mean_gap": 0.0, "median_gap": 0.0}
    times = [tap.time for tap in taps]
    gaps = [b - a for a, b in zip(times, times[1:])] or [0.0]
    return {
        "count": len(taps),
        "first_time": round(times[0], 3),
        "last_time": round(times[-1], 3),
        "mean_gap": round(mean(gaps), 3),
        "median_gap": round(median(gaps), 3),
    }


def time_grid(duration: float, fps: float) -> List[float]:
    """Uniform ``i / fps`` sample times covering ``[0, duration)``."""

    if duration <= 0 or fps <= 0:
        return []
    count = int(math.ceil(duration * fps - 1e-9))
    return [i / fps for i in range(count + 1) if i / fps < duration]
