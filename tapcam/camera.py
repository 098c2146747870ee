"""Virtual camera that pans and zooms onto tap events.

The camera is a small state machine advanced once per displayed or encoded
frame.  It stays centred at 1x until the first tap window opens, follows the
active tap while it is held, then eases the zoom back out and drifts back to
the centre.  Position and zoom chase their targets with first-order
exponential smoothing, so they converge monotonically and never overshoot.

:func:`step_camera` is the whole transition as a pure function.  Live preview
and export both drive it (through :class:`CameraEngine`), which keeps the two
frame-for-frame identical as long as each replays from a fresh state.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence

from loguru import logger

from .config import CameraConfig
from .models import CameraPose, Keyframe, TapEvent
from .utils import clamp, time_grid


class CameraPhase(str, Enum):
    IDLE = "idle"
    TRACKING = "tracking"
    RELEASING = "releasing"


@dataclass(frozen=True)
class CameraState:
    width: float
    height: float
    x: float
    y: float
    zoom: float
    target_x: float
    target_y: float
    target_zoom: float
    vx: float = 0.0
    vy: float = 0.0
    vzoom: float = 0.0
    last_active_tap_time: float = -999.0
    has_engaged: bool = False
    phase: CameraPhase = CameraPhase.IDLE
    last_time: Optional[float] = None

    @classmethod
    def initial(cls, width: float, height: float) -> "CameraState":
        cx, cy = width / 2.0, height / 2.0
        return cls(width=width, height=height, x=cx, y=cy, zoom=1.0, target_x=cx, target_y=cy, target_zoom=1.0)

    @property
    def pose(self) -> CameraPose:
        return CameraPose(x=self.x, y=self.y, zoom=self.zoom)


def ease_in_out_cubic(t: float) -> float:
    if t < 0.5:
        return 4.0 * t * t * t
    return 1.0 - math.pow(-2.0 * t + 2.0, 3) / 2.0


def find_active_tap(time: float, taps: Sequence[TapEvent], config: CameraConfig) -> Optional[TapEvent]:
    """First tap whose ``[time - anticipation, time + hold]`` window contains ``time``."""

    for tap in taps:
        if tap.time - config.anticipation <= time <= tap.time + config.hold_duration:
            return tap
    return None


def _clamp_view(x: float, y: float, zoom: float, width: float, height: float) -> tuple[float, float]:
    view_w = width / zoom
    view_h = height / zoom
    min_x, max_x = view_w / 2.0, width - view_w / 2.0
    min_y, max_y = view_h / 2.0, height - view_h / 2.0
    x = clamp(x, min_x, max_x) if max_x > min_x else width / 2.0
    y = clamp(y, min_y, max_y) if max_y > min_y else height / 2.0
    return x, y


def step_camera(
    state: CameraState,
    time: float,
    taps: Sequence[TapEvent],
    max_zoom: float,
    config: CameraConfig,
) -> CameraState:
    """Advance ``state`` to ``time`` and return the new state."""

    target_x, target_y, target_zoom = state.target_x, state.target_y, state.target_zoom
    last_active = state.last_active_tap_time
    engaged = state.has_engaged
    phase = CameraPhase.IDLE

    active = find_active_tap(time, taps, config)
    if active is not None:
        engaged = True
        phase = CameraPhase.TRACKING
        target_x, target_y = float(active.x), float(active.y)
        target_zoom = active.zoom_level or max_zoom
        last_active = active.time
    elif engaged:
        elapsed = time - last_active - config.hold_duration
        if elapsed <= 0:
            # only reachable when stepping backwards; hold the current targets
            phase = CameraPhase.TRACKING
        else:
            phase = CameraPhase.RELEASING
            progress = min(1.0, elapsed / config.zoom_out_speed)
            eased = ease_in_out_cubic(progress)
            target_zoom = max_zoom - (max_zoom - 1.0) * eased
            if progress > 0.5:
                blend = (progress - 0.5) * 2.0 * config.recenter_rate
                target_x = state.x + (state.width / 2.0 - state.x) * blend
                target_y = state.y + (state.height / 2.0 - state.y) * blend

    x = state.x + (target_x - state.x) * config.lerp_speed
    y = state.y + (target_y - state.y) * config.lerp_speed
    zoom = state.zoom + (target_zoom - state.zoom) * config.zoom_lerp_speed

    zoom = clamp(zoom, config.min_zoom, config.max_zoom_limit)
    x, y = _clamp_view(x, y, zoom, state.width, state.height)

    return replace(
        state,
        x=x,
        y=y,
        zoom=zoom,
        target_x=target_x,
        target_y=target_y,
        target_zoom=target_zoom,
        vx=x - state.x,
        vy=y - state.y,
        vzoom=zoom - state.zoom,
        last_active_tap_time=last_active,
        has_engaged=engaged,
        phase=phase,
        last_time=time,
    )


class CameraEngine:
    """One viewing or export session of the camera.

    Calls to :meth:`update` must come in non-decreasing time order.  To jump
    backwards use :meth:`seek`, which resets and replays the timeline.  Two
    sessions (say preview and export) need two engines.
    """

    def __init__(self, width: float, height: float, config: Optional[CameraConfig] = None) -> None:
        self.width = float(width)
        self.height = float(height)
        self.config = config or CameraConfig()
        self.state = CameraState.initial(self.width, self.height)

    @property
    def pose(self) -> CameraPose:
        return self.state.pose

    def reset(self) -> None:
        self.state = CameraState.initial(self.width, self.height)

    def update(self, time: float, taps: Sequence[TapEvent], max_zoom: Optional[float] = None) -> CameraPose:
        last = self.state.last_time
        if last is not None and time < last:
            logger.warning("Camera updated backwards ({:.3f}s after {:.3f}s); use seek() to replay", time, last)
        zoom = self.config.max_zoom if max_zoom is None else max_zoom
        self.state = step_camera(self.state, time, taps, zoom, self.config)
        return self.state.pose

    def seek(
        self,
        time: float,
        taps: Sequence[TapEvent],
        max_zoom: Optional[float] = None,
        fps: Optional[float] = None,
    ) -> CameraPose:
        """Reset and re-simulate on the frame grid up to ``time``."""

        self.reset()
        for t in time_grid(time, fps or self.config.fps):
            self.update(t, taps, max_zoom)
        return self.update(time, taps, max_zoom)

    def generate_keyframes(
        self,
        taps: Sequence[TapEvent],
        duration: float,
        fps: Optional[float] = None,
        max_zoom: Optional[float] = None,
    ) -> List[Keyframe]:
        rate = fps or self.config.fps
        self.reset()
        keyframes: List[Keyframe] = []
        for t in time_grid(duration, rate):
            pose = self.update(t, taps, max_zoom)
            keyframes.append(Keyframe(time=t, x=pose.x, y=pose.y, zoom=pose.zoom))
        self.reset()
        logger.debug("Generated {} keyframes at {} fps over {:.2f}s", len(keyframes), rate, duration)
        return keyframes


__all__ = [
    "CameraEngine",
    "CameraPhase",
    "CameraState",
    "ease_in_out_cubic",
    "find_active_tap",
    "step_camera",
]
