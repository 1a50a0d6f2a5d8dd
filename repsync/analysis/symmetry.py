"""Body-symmetry analysis for a single landmark frame.

The analysis is a pure function of one frame: shoulder level, hip level and
the horizontal offset of the nose from the hip midpoint are compared against
fixed thresholds, and limb lengths are summed segment by segment. Nothing is
carried between frames.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from repsync.config import SymmetryThresholds
from repsync.vision.landmarks import Joint, Landmark, joint_map

SHOULDER_IMBALANCE = "Shoulder imbalance detected"
HIP_TILT = "Hip tilt present"
SPINE_FORWARD_LEAN = "Spine alignment shows forward lean"

LENGTH_DECIMALS = 3

REQUIRED_JOINTS = (
    Joint.NOSE,
    Joint.LEFT_SHOULDER,
    Joint.RIGHT_SHOULDER,
    Joint.LEFT_ELBOW,
    Joint.RIGHT_ELBOW,
    Joint.LEFT_WRIST,
    Joint.RIGHT_WRIST,
    Joint.LEFT_HIP,
    Joint.RIGHT_HIP,
    Joint.LEFT_KNEE,
    Joint.RIGHT_KNEE,
    Joint.LEFT_ANKLE,
    Joint.RIGHT_ANKLE,
)

DEFAULT_THRESHOLDS = SymmetryThresholds()


class ShoulderSymmetry(str, Enum):
    GOOD = "Good"
    IMBALANCE = "Imbalance"


class SpineAlignment(str, Enum):
    NEUTRAL = "Neutral"
    FORWARD_TILT = "Forward Tilt"


@dataclass(frozen=True)
class SymmetryReport:
    """Symmetry findings for one frame.

    Attributes:
        shoulder_symmetry: ``Imbalance`` when the shoulder height offset
            exceeds the shoulder threshold.
        spine_alignment: ``Forward Tilt`` when the nose drifts horizontally
            from the hip midpoint by more than the spine threshold.
        left_arm_length: Shoulder->elbow->wrist path length, 3 decimals.
        right_arm_length: Same for the right side.
        left_leg_length: Hip->knee->ankle path length, 3 decimals.
        right_leg_length: Same for the right side.
        observations: Findings in fixed order: shoulder, hip, spine.
    """

    shoulder_symmetry: ShoulderSymmetry
    spine_alignment: SpineAlignment
    left_arm_length: float
    right_arm_length: float
    left_leg_length: float
    right_leg_length: float
    observations: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-ready mapping of the report."""
        return {
            "shoulder_symmetry": self.shoulder_symmetry.value,
            "spine_alignment": self.spine_alignment.value,
            "left_arm_length": self.left_arm_length,
            "right_arm_length": self.right_arm_length,
            "left_leg_length": self.left_leg_length,
            "right_leg_length": self.right_leg_length,
            "observations": list(self.observations),
        }


def distance(a: Landmark, b: Landmark) -> float:
    """Planar euclidean distance between two landmarks."""
    return math.hypot(a.x - b.x, a.y - b.y)


def _path_length(*points: Landmark) -> float:
    total = sum(distance(a, b) for a, b in zip(points, points[1:]))
    # Python's round() is round-half-to-even on the binary value.
    return round(total, LENGTH_DECIMALS)


def analyze_landmarks(
    landmarks: Optional[Sequence[Optional[Landmark]]],
    thresholds: Optional[SymmetryThresholds] = None,
) -> Optional[SymmetryReport]:
    """Compute the symmetry report for one frame.

    Args:
        landmarks: Frame of landmarks indexed by :class:`Joint`. Absent slots
            may be ``None``.
        thresholds: Deviation limits; defaults to 0.05 for every check.

    Returns:
        The report, or ``None`` when the frame is absent, empty, or lacks any
        joint the analysis needs.
    """

    joints = joint_map(landmarks, REQUIRED_JOINTS)
    if joints is None:
        return None
    limits = thresholds or DEFAULT_THRESHOLDS

    nose = joints[Joint.NOSE]
    left_shoulder = joints[Joint.LEFT_SHOULDER]
    right_shoulder = joints[Joint.RIGHT_SHOULDER]
    left_hip = joints[Joint.LEFT_HIP]
    right_hip = joints[Joint.RIGHT_HIP]

    shoulder_diff = abs(left_shoulder.y - right_shoulder.y)
    hip_diff = abs(left_hip.y - right_hip.y)
    spine_tilt = abs(nose.x - (left_hip.x + right_hip.x) / 2)

    observations: List[str] = []
    if shoulder_diff > limits.shoulder:
        observations.append(SHOULDER_IMBALANCE)
    if hip_diff > limits.hip:
        observations.append(HIP_TILT)
    if spine_tilt > limits.spine:
        observations.append(SPINE_FORWARD_LEAN)

    return SymmetryReport(
        shoulder_symmetry=(
            ShoulderSymmetry.IMBALANCE if shoulder_diff > limits.shoulder else ShoulderSymmetry.GOOD
        ),
        spine_alignment=(
            SpineAlignment.FORWARD_TILT if spine_tilt > limits.spine else SpineAlignment.NEUTRAL
        ),
        left_arm_length=_path_length(left_shoulder, joints[Joint.LEFT_ELBOW], joints[Joint.LEFT_WRIST]),
        right_arm_length=_path_length(right_shoulder, joints[Joint.RIGHT_ELBOW], joints[Joint.RIGHT_WRIST]),
        left_leg_length=_path_length(left_hip, joints[Joint.LEFT_KNEE], joints[Joint.LEFT_ANKLE]),
        right_leg_length=_path_length(right_hip, joints[Joint.RIGHT_KNEE], joints[Joint.RIGHT_ANKLE]),
        observations=tuple(observations),
    )
