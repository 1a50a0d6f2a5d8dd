"""MediaPipe Tasks collaborators for :class:`DetectorLifecycle`.

The backend preparer resolves the landmarker delegate for the selected compute
backend and the model factory builds one single-person ``PoseLandmarker`` from
the configured lite model asset. MediaPipe and numpy are imported lazily so
the rest of the package (analysis, CLI, API) works without the pose extras.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

from repsync.config import DetectorConfig
from repsync.detector.backends import ComputeBackend
from repsync.detector.lifecycle import BackendUnavailable, ModelLoadFailure
from repsync.vision.landmarks import Landmark

logger = logging.getLogger(__name__)


def _require_mediapipe():
    """Import MediaPipe lazily to avoid a hard dependency when unused."""
    try:
        import mediapipe as mp  # type: ignore
    except ImportError as exc:  # pragma: no cover - environment dependent
        raise ImportError(
            "mediapipe is required for on-device pose detection. "
            "Install the pose extras: pip install 'repsync[pose]'."
        ) from exc
    return mp


def _require_numpy():
    try:
        import numpy as np  # type: ignore
    except ImportError as exc:  # pragma: no cover - environment dependent
        raise ImportError(
            "numpy is required to hand images to the pose detector. "
            "Install the pose extras: pip install 'repsync[pose]'."
        ) from exc
    return np


def _delegate_for(mp: Any, backend: ComputeBackend) -> Any:
    delegates = mp.tasks.BaseOptions.Delegate
    return delegates.GPU if backend is ComputeBackend.GPU else delegates.CPU


class MediaPipePoseModel:
    """Single-person landmarker wrapped to emit landmark frames."""

    def __init__(self, landmarker: Any, mp: Any) -> None:
        self._landmarker = landmarker
        self._mp = mp

    def detect(self, image: Any) -> Optional[List[Optional[Landmark]]]:
        """Detect landmarks on an RGB image (H,W,3 uint8).

        Returns ``None`` when no person is found.
        """
        np = _require_numpy()
        rgb = np.ascontiguousarray(image, dtype=np.uint8)
        mp_image = self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=rgb)
        result = self._landmarker.detect(mp_image)
        if not result or not getattr(result, "pose_landmarks", None):
            return None
        return [
            Landmark(
                x=float(lm.x),
                y=float(lm.y),
                z=float(lm.z or 0.0),
                visibility=float(lm.visibility) if lm.visibility is not None else None,
            )
            for lm in result.pose_landmarks[0]
        ]

    def close(self) -> None:
        self._landmarker.close()


class MediaPipeBackendPreparer:
    """Checks that the MediaPipe runtime and the backend's delegate exist."""

    async def prepare(self, backend: ComputeBackend) -> None:
        try:
            mp = _require_mediapipe()
            _delegate_for(mp, backend)
        except (ImportError, AttributeError) as exc:
            raise BackendUnavailable(f"{backend.value} backend unavailable: {exc}") from exc
        logger.info("MediaPipe %s backend ready", backend.value)


class MediaPipeModelFactory:
    """Builds the pose landmarker off the event loop."""

    async def load(self, config: DetectorConfig, backend: ComputeBackend) -> MediaPipePoseModel:
        return await asyncio.to_thread(self._create, config, backend)

    def _create(self, config: DetectorConfig, backend: ComputeBackend) -> MediaPipePoseModel:
        if not config.model_path.exists():
            raise ModelLoadFailure(f"Pose model asset not found: {config.model_path}")
        mp = _require_mediapipe()
        vision = mp.tasks.vision
        options = vision.PoseLandmarkerOptions(
            base_options=mp.tasks.BaseOptions(
                model_asset_path=str(config.model_path),
                delegate=_delegate_for(mp, backend),
            ),
            running_mode=vision.RunningMode.IMAGE,
            num_poses=1,
            min_pose_detection_confidence=config.min_detection_confidence,
            min_pose_presence_confidence=config.min_presence_confidence,
            min_tracking_confidence=config.min_tracking_confidence,
        )
        try:
            landmarker = vision.PoseLandmarker.create_from_options(options)
        except Exception as exc:  # noqa: BLE001 - surface underlying load error
            raise ModelLoadFailure(f"Failed to load pose model {config.model_path}: {exc}") from exc
        logger.info("Loaded pose model %s on %s", config.model_path, backend.value)
        return MediaPipePoseModel(landmarker, mp)
