"""Landmark frame model.

Detectors emit a fixed-length sequence of landmarks, one slot per body joint,
in the BlazePose/MediaPipe 33-point order. :class:`Joint` names those slots so
downstream code reads ``Joint.LEFT_SHOULDER`` instead of a raw index, and
:func:`joint_map` validates a frame once at the boundary.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence


class Joint(IntEnum):
    """Frame slot of each body joint."""

    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


FRAME_SIZE = len(Joint)


@dataclass(frozen=True)
class Landmark:
    """Single detected joint in normalized image coordinates."""

    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = None

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    @classmethod
    def from_obj(cls, obj: Mapping[str, Any]) -> "Landmark":
        """Build a landmark from a JSON-style mapping with ``x``/``y`` keys."""
        try:
            x = float(obj["x"])
            y = float(obj["y"])
        except KeyError as exc:
            raise ValueError(f"landmark is missing coordinate {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise ValueError(f"landmark coordinates must be numbers: {obj!r}") from exc
        z = obj.get("z")
        visibility = obj.get("visibility")
        return cls(
            x=x,
            y=y,
            z=float(z) if z is not None else 0.0,
            visibility=float(visibility) if visibility is not None else None,
        )


def joint_map(
    landmarks: Optional[Sequence[Optional[Landmark]]],
    joints: Iterable[Joint],
) -> Optional[Dict[Joint, Landmark]]:
    """Resolve the requested joints from a frame.

    Returns ``None`` when the frame is absent or empty, or when any requested
    slot is out of range, empty, or carries non-finite coordinates.
    """

    if not landmarks:
        return None
    resolved: Dict[Joint, Landmark] = {}
    for joint in joints:
        if joint >= len(landmarks):
            return None
        landmark = landmarks[joint]
        if landmark is None or not landmark.is_finite:
            return None
        resolved[joint] = landmark
    return resolved
