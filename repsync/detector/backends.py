"""Compute backend selection for the pose detector."""

from __future__ import annotations

from enum import Enum


class ComputeBackend(str, Enum):
    GPU = "gpu"
    CPU = "cpu"


# Platforms where the landmarker's GPU delegate is available.
GPU_PLATFORMS = frozenset({"linux", "darwin", "ios", "android"})


def select_backend(platform: str) -> ComputeBackend:
    """Pick the compute backend for a platform identifier.

    GPU where the runtime ships an accelerated delegate, CPU otherwise
    (including unknown or empty identifiers).
    """
    normalized = (platform or "").strip().lower()
    if normalized in GPU_PLATFORMS:
        return ComputeBackend.GPU
    return ComputeBackend.CPU
