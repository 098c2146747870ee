"""Turn the per-frame indicator track into discrete tap events."""
from __future__ import annotations

import bisect
from dataclasses import replace
from typing import List, Optional, Sequence

from loguru import logger

from .config import TapConfig
from .models import AnimationKind, TapEvent, TrackPoint
from .utils import distance, round_px


def _tap_from(point: TrackPoint) -> TapEvent:
    radius = round_px(point.radius) if point.radius is not None else None
    return TapEvent(time=point.time, x=round_px(point.x), y=round_px(point.y), radius=radius)


def synthesize_taps(track: Sequence[TrackPoint], config: Optional[TapConfig] = None) -> List[TapEvent]:
    """Emit one tap per pause of the indicator.

    A pause opens on the first frame that moved less than
    ``movement_threshold`` from the previous one and closes when the
    indicator moves again or the track is lost.  Pauses spanning at least
    ``min_pause_frames`` frame-to-frame steps become a tap at the pause's
    first frame.
    """

    cfg = config or TapConfig()
    taps: List[TapEvent] = []
    pause_start: Optional[int] = None

    for i in range(1, len(track)):
        prev, curr = track[i - 1], track[i]
        if prev.lost or curr.lost:
            if pause_start is not None and i - pause_start >= cfg.min_pause_frames:
                taps.append(_tap_from(track[pause_start]))
            pause_start = None
            continue

        movement = distance(curr.x, curr.y, prev.x, prev.y)
        if movement < cfg.movement_threshold:
            if pause_start is None:
                pause_start = i
        else:
            if pause_start is not None and i - pause_start >= cfg.min_pause_frames:
                taps.append(_tap_from(track[pause_start]))
            pause_start = None

    if pause_start is not None and len(track) - pause_start >= cfg.min_pause_frames:
        taps.append(_tap_from(track[pause_start]))
    return taps


def _cluster_pass(taps: Sequence[TapEvent], cfg: TapConfig) -> List[TapEvent]:
    heads: List[TapEvent] = [taps[0]]
    last = taps[0]
    for tap in taps[1:]:
        near = distance(tap.x, tap.y, last.x, last.y) < cfg.cluster_distance
        soon = tap.time - last.time < cfg.cluster_time
        if not (near and soon):
            heads.append(tap)
        last = tap
    return heads


def cluster_taps(taps: Sequence[TapEvent], config: Optional[TapConfig] = None) -> List[TapEvent]:
    """Collapse near-duplicate taps into the first tap of each cluster.

    Taps are ordered by time and grouped greedily: a tap joins the open
    cluster when it is close in space and time to the cluster's latest
    member.  The pass is repeated on its own output until nothing merges, so
    clustering an already clustered list returns it unchanged.
    """

    cfg = config or TapConfig()
    if not taps:
        return []
    current = sorted(taps, key=lambda tap: tap.time)
    passes = 0
    while True:
        merged = _cluster_pass(current, cfg)
        passes += 1
        if len(merged) == len(current):
            break
        current = merged
    if passes > 2:
        logger.debug("Tap clustering settled after {} passes", passes)
    return merged


def is_time_ordered(taps: Sequence[TapEvent]) -> bool:
    return all(a.time <= b.time for a, b in zip(taps, taps[1:]))


def insert_tap(taps: Sequence[TapEvent], tap: TapEvent) -> List[TapEvent]:
    """Return a new list with ``tap`` placed after any taps at the same time."""

    result = list(taps)
    times = [item.time for item in result]
    result.insert(bisect.bisect_right(times, tap.time), tap)
    return result


def manual_tap(
    time: float,
    x: float,
    y: float,
    animation: AnimationKind = AnimationKind.PULSE,
    zoom_level: Optional[float] = None,
) -> TapEvent:
    return TapEvent(
        time=float(time),
        x=round_px(x),
        y=round_px(y),
        animation=animation,
        zoom_level=zoom_level,
        source="manual",
    )


def apply_tap_settings(
    taps: Sequence[TapEvent],
    animation: AnimationKind,
    zoom_level: Optional[float] = None,
) -> List[TapEvent]:
    return [replace(tap, animation=animation, zoom_level=zoom_level) for tap in taps]


__all__ = [
    "apply_tap_settings",
    "cluster_taps",
    "insert_tap",
    "is_time_ordered",
    "manual_tap",
    "synthesize_taps",
]
