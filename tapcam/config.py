"""Configuration models and loader for the tap camera pipeline."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .models import AnimationKind


class PathsConfig(BaseModel):
    video: Path = Field(Path("recording.mp4"), description="Screen recording to analyse.")
    output_dir: Path = Field(Path("out"), description="Base directory for derived outputs.")


class SamplingConfig(BaseModel):
    fps: float = Field(10.0, gt=0.0, description="Frames sampled per second of video during detection.")


class DetectorConfig(BaseModel):
    stride: int = Field(4, ge=1, description="Pixel sub-sampling step in both axes.")
    cell_size: int = Field(20, ge=1, description="Side of the coarse grid used to group glyph pixels.")
    max_channel_deviation: float = Field(30.0, ge=0.0, description="Max distance of any channel from the RGB mean.")
    min_brightness: float = Field(90.0, ge=0.0, le=255.0)
    max_brightness: float = Field(230.0, ge=0.0, le=255.0)
    min_cell_pixels: int = Field(2, ge=1, description="Grid cells with fewer glyph pixels do not join blobs.")
    min_blob_pixels: int = Field(10, ge=1, description="Sampled pixels a blob needs before it is measured.")
    min_radius: float = Field(15.0, ge=0.0)
    max_radius: float = Field(120.0, ge=0.0)
    min_circularity: float = Field(0.2, ge=0.0)
    max_circularity: float = Field(1.5, ge=0.0)

    @model_validator(mode="after")
    def check_bands(self) -> "DetectorConfig":
        if self.min_brightness >= self.max_brightness:
            raise ValueError("min_brightness must be below max_brightness")
        if self.min_radius > self.max_radius:
            raise ValueError("min_radius must not exceed max_radius")
        if self.min_circularity >= self.max_circularity:
            raise ValueError("min_circularity must be below max_circularity")
        return self


class StationaryConfig(BaseModel):
    grid_size: float = Field(50.0, gt=0.0, description="Cell size of the persistence map in pixels.")
    threshold: int = Field(5, ge=1, description="Frames in one place before a spot counts as static UI.")
    hard_multiplier: int = Field(2, ge=1, description="threshold * hard_multiplier frames means outright rejection.")
    decay_frames: int = Field(20, ge=0, description="Entries unseen for longer than this are dropped.")


class TrajectoryConfig(BaseModel):
    history: int = Field(10, ge=3, description="Accepted positions kept for velocity estimates.")


class SelectorConfig(BaseModel):
    stationary_penalty: float = Field(0.1, ge=0.0)
    exclude_hard_radius: float = Field(60.0, ge=0.0)
    exclude_soft_radius: float = Field(120.0, ge=0.0)
    exclude_penalty: float = Field(0.2, ge=0.0)
    min_velocity: float = Field(5.0, ge=0.0, description="px/frame before the trajectory prediction is trusted.")
    prediction_near: float = Field(50.0, ge=0.0)
    prediction_near_bonus: float = Field(3.0, ge=0.0)
    prediction_mid: float = Field(100.0, ge=0.0)
    prediction_mid_bonus: float = Field(1.5, ge=0.0)
    prediction_far: float = Field(200.0, ge=0.0)
    prediction_far_penalty: float = Field(0.3, ge=0.0)
    continuity_near: float = Field(60.0, ge=0.0)
    continuity_near_bonus: float = Field(2.0, ge=0.0)
    continuity_mid: float = Field(120.0, ge=0.0)
    continuity_mid_bonus: float = Field(1.2, ge=0.0)
    continuity_jump: float = Field(250.0, ge=0.0)
    target_radius: float = Field(100.0, ge=0.0)
    target_bonus: float = Field(1.5, ge=0.0)


class TapConfig(BaseModel):
    movement_threshold: float = Field(15.0, gt=0.0, description="Per-frame movement below this counts as paused.")
    min_pause_frames: int = Field(2, ge=1)
    cluster_distance: float = Field(80.0, ge=0.0)
    cluster_time: float = Field(0.5, ge=0.0)
    animation: AnimationKind = Field(AnimationKind.PULSE, description="Animation stamped on detected taps.")
    zoom_level: Optional[float] = Field(None, ge=1.0, le=3.0, description="Per-tap zoom stamped on detected taps.")


class CameraConfig(BaseModel):
    lerp_speed: float = Field(0.03, gt=0.0, le=1.0)
    zoom_lerp_speed: float = Field(0.025, gt=0.0, le=1.0)
    hold_duration: float = Field(1.2, ge=0.0, description="Seconds the camera stays on a tap.")
    anticipation: float = Field(0.25, ge=0.0, description="Seconds before a tap the camera starts moving.")
    zoom_out_speed: float = Field(1.0, gt=0.0, description="Seconds the eased zoom-out takes.")
    recenter_rate: float = Field(0.1, ge=0.0, le=1.0)
    min_zoom: float = Field(1.0, gt=0.0)
    max_zoom_limit: float = Field(3.0, gt=0.0)
    max_zoom: float = Field(1.8, ge=1.0, description="Zoom used for taps without their own zoom level.")
    fps: float = Field(30.0, gt=0.0, description="Keyframe rate for export.")

    @field_validator("max_zoom_limit")
    @classmethod
    def validate_limit(cls, value: float) -> float:
        if value < 1.0:
            raise ValueError("max_zoom_limit must be >= 1.0")
        return value


class AppConfig(BaseModel):
    paths: PathsConfig = Field(default_factory=PathsConfig)
    sampling: SamplingConfig = Field(default_factory=SamplingConfig)
    detector: DetectorConfig = Field(default_factory=DetectorConfig)
    stationary: StationaryConfig = Field(default_factory=StationaryConfig)
    trajectory: TrajectoryConfig = Field(default_factory=TrajectoryConfig)
    selector: SelectorConfig = Field(default_factory=SelectorConfig)
    taps: TapConfig = Field(default_factory=TapConfig)
    camera: CameraConfig = Field(default_factory=CameraConfig)

    @property
    def output_dir(self) -> Path:
        return self.paths.output_dir


def load_config(path: Path | str) -> AppConfig:
    """Load configuration from YAML, falling back to defaults when missing."""

    cfg_path = Path(path)
    if not cfg_path.exists():
        return AppConfig()
    data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    return AppConfig.model_validate(data)
