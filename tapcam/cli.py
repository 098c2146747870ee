"""Console entry point for the tap camera pipeline."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List

from loguru import logger

from .camera import CameraEngine
from .config import AppConfig, load_config
from .detect import run_detection
from .io import VideoFrameSource, read_taps, write_keyframes, write_taps, write_track
from .models import AnimationKind, CalibrationHints, CalibrationPoint
from .utils import PipelineReport, summary_stats


_LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | {name}:{function} - {message}"


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO", format=_LOG_FORMAT)


def parse_point(value: str) -> CalibrationPoint:
    """Parse ``x,y`` or ``x,y,radius``."""

    parts = [p.strip() for p in value.split(",") if p.strip()]
    if len(parts) not in (2, 3):
        raise argparse.ArgumentTypeError(f"expected x,y[,radius], got {value!r}")
    try:
        nums = [float(p) for p in parts]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid point {value!r}: {exc}") from exc
    if len(nums) == 3:
        return CalibrationPoint(nums[0], nums[1], nums[2])
    return CalibrationPoint(nums[0], nums[1])


def cmd_detect(config: AppConfig, args: argparse.Namespace) -> None:
    if args.fps is not None:
        config.sampling.fps = args.fps
    if args.animation:
        config.taps.animation = AnimationKind(args.animation)
    if args.zoom_level is not None:
        config.taps.zoom_level = args.zoom_level
    video_path = Path(args.video) if args.video else Path(config.paths.video)
    config.paths.video = video_path
    out_path = Path(args.out or (config.output_dir / "taps.json"))
    calibration = CalibrationHints(target=args.target, exclude=args.exclude)

    with VideoFrameSource(video_path) as source:
        result = run_detection(source, config, calibration, show_progress=True)
    write_taps(out_path, result.taps)
    if args.track_csv:
        write_track(Path(args.track_csv), result.track)

    report = PipelineReport.load(config.output_dir)
    report.record(
        "detect",
        {
            **summary_stats(result.taps),
            "frames": result.frames_processed,
            "lost_frames": result.lost_frames,
            "movement_stops": len(result.raw_taps),
            "stationary_zones": len(result.stationary_zones),
            "output": out_path.as_posix(),
        },
    )
    logger.info("Wrote {} taps to {}", len(result.taps), out_path)


def cmd_keyframes(config: AppConfig, args: argparse.Namespace) -> None:
    if args.fps is not None:
        config.camera.fps = args.fps
    if args.max_zoom is not None:
        config.camera.max_zoom = args.max_zoom
    taps = read_taps(Path(args.taps))
    if args.video:
        with VideoFrameSource(args.video) as source:
            width, height, duration = source.width, source.height, source.duration
    else:
        if args.width is None or args.height is None or args.duration is None:
            raise SystemExit("keyframes needs --video or all of --width, --height and --duration")
        width, height, duration = args.width, args.height, args.duration

    engine = CameraEngine(width, height, config.camera)
    keyframes = engine.generate_keyframes(taps, duration)
    out_path = Path(args.out or (config.output_dir / "keyframes.csv"))
    write_keyframes(out_path, keyframes)

    report = PipelineReport.load(config.output_dir)
    report.record(
        "keyframes",
        {
            "count": len(keyframes),
            "fps": config.camera.fps,
            "max_zoom": config.camera.max_zoom,
            "peak_zoom": round(max((kf.zoom for kf in keyframes), default=1.0), 4),
            "output": out_path.as_posix(),
        },
    )
    logger.info("Wrote {} keyframes to {}", len(keyframes), out_path)


def cmd_pose(config: AppConfig, args: argparse.Namespace) -> None:
    if args.max_zoom is not None:
        config.camera.max_zoom = args.max_zoom
    taps = read_taps(Path(args.taps))
    engine = CameraEngine(args.width, args.height, config.camera)
    pose = engine.seek(args.time, taps)
    left, top, view_w, view_h = pose.crop_rect(args.width, args.height)
    payload = {
        "time": args.time,
        "x": round(pose.x, 3),
        "y": round(pose.y, 3),
        "zoom": round(pose.zoom, 5),
        "crop": [round(left, 3), round(top, 3), round(view_w, 3), round(view_h, 3)],
        "phase": engine.state.phase.value,
    }
    PipelineReport.load(config.output_dir).record("pose", payload)
    print(json.dumps(payload))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tapcam", description="Screen recording tap detection and camera choreography")
    parser.add_argument("--config", default="config.yaml", help="Path to YAML configuration file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    detect_p = sub.add_parser("detect", help="Find taps in a screen recording")
    detect_p.add_argument("--video")
    detect_p.add_argument("--out")
    detect_p.add_argument("--fps", type=float, help="Sampling rate for detection")
    detect_p.add_argument("--target", type=parse_point, help="Where the indicator starts: x,y[,radius]")
    detect_p.add_argument("--exclude", type=parse_point, help="Static glyph to ignore: x,y[,radius]")
    detect_p.add_argument("--track-csv", dest="track_csv", help="Also write the per-frame track")
    detect_p.add_argument("--animation", choices=[kind.value for kind in AnimationKind])
    detect_p.add_argument("--zoom-level", dest="zoom_level", type=float)
    detect_p.set_defaults(func=cmd_detect)

    kf_p = sub.add_parser("keyframes", help="Sample the camera path for export")
    kf_p.add_argument("--taps", required=True)
    kf_p.add_argument("--video")
    kf_p.add_argument("--width", type=float)
    kf_p.add_argument("--height", type=float)
    kf_p.add_argument("--duration", type=float)
    kf_p.add_argument("--fps", type=float)
    kf_p.add_argument("--max-zoom", dest="max_zoom", type=float)
    kf_p.add_argument("--out")
    kf_p.set_defaults(func=cmd_keyframes)

    pose_p = sub.add_parser("pose", help="Print the camera pose at one time")
    pose_p.add_argument("--taps", required=True)
    pose_p.add_argument("--width", type=float, required=True)
    pose_p.add_argument("--height", type=float, required=True)
    pose_p.add_argument("--time", type=float, required=True)
    pose_p.add_argument("--max-zoom", dest="max_zoom", type=float)
    pose_p.set_defaults(func=cmd_pose)

    return parser


def main(argv: List[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    config_path = Path(args.config)
    if not config_path.exists():
        logger.info("No {} found; running with built-in defaults", config_path)
    config = load_config(config_path)
    config.output_dir.mkdir(parents=True, exist_ok=True)
    args.func(config, args)


if __name__ == "__main__":
    main()
