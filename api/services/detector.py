"""
Process-scoped detector lifecycle for the API.

The app owns exactly one DetectorLifecycle, created at startup and torn down at shutdown.
Routes reach it only through get_lifecycle().
"""

from __future__ import annotations

import logging

from fastapi import Request

from repsync.config import Settings
from repsync.detector.lifecycle import DetectorLifecycle, StaticPermission
from repsync.detector.mediapipe_provider import MediaPipeBackendPreparer, MediaPipeModelFactory

logger = logging.getLogger(__name__)


def build_lifecycle(settings: Settings) -> DetectorLifecycle:
    """
    Wire the MediaPipe collaborators. A server has no interactive prompt, so capture
    permission comes from configuration.
    """
    return DetectorLifecycle(
        permissions=StaticPermission(settings.capture_permission),
        preparer=MediaPipeBackendPreparer(),
        factory=MediaPipeModelFactory(),
        config=settings.detector,
    )


def get_lifecycle(request: Request) -> DetectorLifecycle:
    return request.app.state.lifecycle


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
