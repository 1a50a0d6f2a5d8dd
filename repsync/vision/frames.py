"""JSONL landmark-frame reader.

Each non-blank line holds one frame, either as a bare list of landmark objects
(``null`` for an absent slot) or as an object with a ``landmarks`` key, e.g.
as exported by a capture client. The format is intentionally simple to ease
inspection and replay during development.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator, List, Optional

from repsync.vision.landmarks import Landmark

LandmarkFrame = List[Optional[Landmark]]


class FrameFormatError(ValueError):
    """Raised when a frame file line cannot be parsed into landmarks."""


def parse_landmark_frame(obj: Any) -> LandmarkFrame:
    """Convert a decoded JSON value into a landmark frame."""
    if isinstance(obj, dict):
        obj = obj.get("landmarks")
    if not isinstance(obj, list):
        raise ValueError("frame must be a list of landmarks or an object with a 'landmarks' list")
    return [Landmark.from_obj(item) if item is not None else None for item in obj]


def load_landmark_frames(frame_file: Path) -> Iterator[LandmarkFrame]:
    """Read landmark frames from a JSONL file, one frame per line."""
    with frame_file.open("r", encoding="utf-8") as fh:
        for line_no, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            try:
                yield parse_landmark_frame(json.loads(line))
            except ValueError as exc:
                raise FrameFormatError(f"{frame_file}:{line_no}: {exc}") from exc
