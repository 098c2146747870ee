"""Tests for tapcam.config."""
from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from tapcam.config import AppConfig, CameraConfig, DetectorConfig, TapConfig, load_config
from tapcam.models import AnimationKind


class TestDefaults:
    def test_detector(self, default_config):
        det = default_config.detector
        assert det.stride == 4
        assert det.cell_size == 20
        assert (det.min_brightness, det.max_brightness) == (90.0, 230.0)
        assert (det.min_radius, det.max_radius) == (15.0, 120.0)

    def test_tracking(self, default_config):
        assert default_config.stationary.grid_size == 50.0
        assert default_config.stationary.threshold == 5
        assert default_config.trajectory.history == 10
        assert default_config.sampling.fps == 10.0

    def test_taps(self, default_config):
        taps = default_config.taps
        assert taps.movement_threshold == 15.0
        assert taps.min_pause_frames == 2
        assert (taps.cluster_distance, taps.cluster_time) == (80.0, 0.5)
        assert taps.animation is AnimationKind.PULSE

    def test_camera(self, default_config):
        cam = default_config.camera
        assert (cam.lerp_speed, cam.zoom_lerp_speed) == (0.03, 0.025)
        assert (cam.hold_duration, cam.anticipation) == (1.2, 0.25)
        assert cam.max_zoom == 1.8

    def test_output_dir_property(self, default_config):
        assert default_config.output_dir == Path("out")


class TestValidation:
    def test_brightness_band(self):
        with pytest.raises(ValidationError):
            DetectorConfig(min_brightness=200, max_brightness=100)

    def test_circularity_band(self):
        with pytest.raises(ValidationError):
            DetectorConfig(min_circularity=1.0, max_circularity=0.5)

    def test_tap_zoom_range(self):
        with pytest.raises(ValidationError):
            TapConfig(zoom_level=4.0)

    def test_lerp_range(self):
        with pytest.raises(ValidationError):
            CameraConfig(lerp_speed=0.0)

    def test_zoom_limit(self):
        with pytest.raises(ValidationError):
            CameraConfig(max_zoom_limit=0.5)

    def test_animation_from_string(self):
        assert TapConfig(animation="ring").animation is AnimationKind.RING


class TestLoadConfig:
    def test_missing_file(self, tmp_path: Path):
        cfg = load_config(tmp_path / "nope.yaml")
        assert cfg == AppConfig()

    def test_yaml(self, sample_yaml: Path, tmp_path: Path):
        cfg = load_config(sample_yaml)
        assert cfg.paths.video == Path("demo.mp4")
        assert cfg.output_dir == tmp_path / "results"
        assert cfg.sampling.fps == 5.0
        assert cfg.taps.animation is AnimationKind.RIPPLE
        assert cfg.taps.cluster_distance == 60.0
        assert cfg.camera.max_zoom == 2.0
        assert cfg.camera.lerp_speed == 0.03

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path) == AppConfig()

    def test_invalid_value(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("sampling:\n  fps: -1\n")
        with pytest.raises(ValidationError):
            load_config(path)
