"""Shared configuration used by the detector lifecycle and symmetry analysis."""

import math
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

ENV_PREFIX = "REPSYNC_"

_TRUE_VALUES = {"1", "true", "yes", "on", "granted"}
_FALSE_VALUES = {"0", "false", "no", "off", "denied"}


@dataclass(frozen=True)
class SymmetryThresholds:
    """Deviation limits (normalized image units) above which a finding is flagged.

    Attributes:
        shoulder: Max vertical offset between the shoulders before
            ``Imbalance`` is reported.
        hip: Max vertical offset between the hips before a hip tilt
            observation is added.
        spine: Max horizontal offset between the nose and the hip midpoint
            before ``Forward Tilt`` is reported.
    """

    shoulder: float = 0.05
    hip: float = 0.05
    spine: float = 0.05

    def __post_init__(self) -> None:
        for name in ("shoulder", "hip", "spine"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} threshold must be a finite number >= 0, got {value!r}")


@dataclass(frozen=True)
class DetectorConfig:
    """Configuration for the single-person pose landmarker.

    The lite model keeps inference light; the asset itself is provisioned
    outside this package.
    """

    model_path: Path = Path("models") / "pose_landmarker_lite.task"
    min_detection_confidence: float = 0.5
    min_presence_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    platform: str = sys.platform

    def __post_init__(self) -> None:
        for name in ("min_detection_confidence", "min_presence_confidence", "min_tracking_confidence"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value!r}")


@dataclass(frozen=True)
class Settings:
    """Top-level settings bundle for the CLI and the API."""

    detector: DetectorConfig = field(default_factory=DetectorConfig)
    thresholds: SymmetryThresholds = field(default_factory=SymmetryThresholds)
    capture_permission: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``REPSYNC_*`` environment variables.

        Unset variables keep their defaults. Malformed values raise
        ``ValueError`` naming the offending variable.
        """
        env = os.environ if environ is None else environ
        defaults_detector = DetectorConfig()
        defaults_thresholds = SymmetryThresholds()

        detector = DetectorConfig(
            model_path=Path(env.get(ENV_PREFIX + "MODEL_PATH", str(defaults_detector.model_path))),
            platform=env.get(ENV_PREFIX + "PLATFORM", defaults_detector.platform),
        )
        thresholds = SymmetryThresholds(
            shoulder=_env_float(env, "SHOULDER_THRESHOLD", defaults_thresholds.shoulder),
            hip=_env_float(env, "HIP_THRESHOLD", defaults_thresholds.hip),
            spine=_env_float(env, "SPINE_THRESHOLD", defaults_thresholds.spine),
        )
        return cls(
            detector=detector,
            thresholds=thresholds,
            capture_permission=_env_bool(env, "CAPTURE_PERMISSION", True),
            log_level=env.get(ENV_PREFIX + "LOG_LEVEL", "INFO").upper(),
        )


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from exc


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean flag, got {raw!r}")
