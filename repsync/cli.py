"""Command-line interface for offline symmetry analysis.

Usage:
    repsync analyze frames.jsonl [--output report.jsonl] [--shoulder-threshold 0.05]

Each input line is one landmark frame; each output line is the frame's report,
or ``null`` when the frame could not be analyzed.
"""

from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from repsync.analysis.symmetry import analyze_landmarks
from repsync.config import Settings, SymmetryThresholds
from repsync.vision.frames import FrameFormatError, load_landmark_frames

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="repsync",
        description="Body-symmetry analysis for 2D pose landmark frames.",
    )
    sub = p.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze a JSONL file of landmark frames.")
    analyze.add_argument("frames", help="Path to a JSONL file, one landmark frame per line.")
    analyze.add_argument("--output", default=None,
                         help="Write reports to this JSONL file instead of stdout.")
    analyze.add_argument("--shoulder-threshold", type=float, default=None,
                         help="Shoulder height offset above which Imbalance is reported "
                              "(default: REPSYNC_SHOULDER_THRESHOLD or 0.05).")
    analyze.add_argument("--hip-threshold", type=float, default=None,
                         help="Hip height offset above which a hip tilt is reported "
                              "(default: REPSYNC_HIP_THRESHOLD or 0.05).")
    analyze.add_argument("--spine-threshold", type=float, default=None,
                         help="Nose to hip-midpoint offset above which Forward Tilt is reported "
                              "(default: REPSYNC_SPINE_THRESHOLD or 0.05).")
    analyze.add_argument("--log-level", default=None,
                         help="Logging level (default: REPSYNC_LOG_LEVEL or INFO).")

    return p.parse_args(argv)


def validate_args(args: argparse.Namespace) -> None:
    for name in ("shoulder_threshold", "hip_threshold", "spine_threshold"):
        value = getattr(args, name)
        if value is not None and (math.isnan(value) or math.isinf(value) or value < 0):
            flag = "--" + name.replace("_", "-")
            raise ValueError(f"{flag} must be a finite number >= 0.")

    frames_path = Path(args.frames).expanduser()
    if not frames_path.is_file():
        raise FileNotFoundError(f"Frame file not found: {frames_path}")

    if args.output is not None:
        out_path = Path(args.output).expanduser()
        if out_path.parent and not out_path.parent.exists():
            raise FileNotFoundError(
                f"Output directory does not exist: {out_path.parent}\n"
                f"Create it first, or choose a different --output path."
            )


def resolve_thresholds(args: argparse.Namespace, settings: Settings) -> SymmetryThresholds:
    defaults = settings.thresholds
    return SymmetryThresholds(
        shoulder=args.shoulder_threshold if args.shoulder_threshold is not None else defaults.shoulder,
        hip=args.hip_threshold if args.hip_threshold is not None else defaults.hip,
        spine=args.spine_threshold if args.spine_threshold is not None else defaults.spine,
    )


def analyze_file(frames_path: Path, thresholds: SymmetryThresholds, out: TextIO) -> int:
    """Write one report line per frame; return the number of analyzable frames."""
    analyzed = 0
    for frame in load_landmark_frames(frames_path):
        report = analyze_landmarks(frame, thresholds)
        if report is not None:
            analyzed += 1
        out.write(json.dumps(report.to_dict() if report is not None else None))
        out.write("\n")
    return analyzed


def run(args: argparse.Namespace) -> int:
    try:
        settings = Settings.from_env()
        logging.basicConfig(
            level=(args.log_level or settings.log_level).upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        validate_args(args)
        thresholds = resolve_thresholds(args, settings)

        frames_path = Path(args.frames).expanduser()
        if args.output is None:
            analyzed = analyze_file(frames_path, thresholds, sys.stdout)
        else:
            with Path(args.output).expanduser().open("w", encoding="utf-8") as out:
                analyzed = analyze_file(frames_path, thresholds, out)
        logger.info("Analyzed %d frame(s) from %s", analyzed, frames_path)
        return 0
    except (FrameFormatError, FileNotFoundError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


def run_cli(argv: Optional[List[str]] = None) -> int:
    return run(parse_args(argv))


if __name__ == "__main__":
    raise SystemExit(run_cli())
