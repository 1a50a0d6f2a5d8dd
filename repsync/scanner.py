"""Frame-by-frame body scanning on top of a ready detector."""

from __future__ import annotations

from typing import Any, Optional

from repsync.analysis.symmetry import SymmetryReport, analyze_landmarks
from repsync.config import SymmetryThresholds
from repsync.detector.lifecycle import DetectorLifecycle, DetectorNotReadyError


class BodyScanner:
    """Requests one landmark frame per image and analyzes it.

    Frames are only requested while the lifecycle is ready. Nothing is
    buffered or carried over between calls.
    """

    def __init__(
        self,
        lifecycle: DetectorLifecycle,
        thresholds: Optional[SymmetryThresholds] = None,
    ) -> None:
        self.lifecycle = lifecycle
        self.thresholds = thresholds

    def scan(self, image: Any) -> Optional[SymmetryReport]:
        """Detect landmarks on ``image`` and return its symmetry report.

        Raises:
            DetectorNotReadyError: if the detector is not ready.
        """
        handle = self.lifecycle.detector
        if handle is None:
            raise DetectorNotReadyError(self.lifecycle.current_state())
        return analyze_landmarks(handle.detect(image), self.thresholds)
