"""
Image decoding for uploaded capture frames.

OpenCV and numpy are imported lazily; both ship with the pose extras alongside MediaPipe.
"""

from __future__ import annotations

from typing import Any


class ImageDecodeError(ValueError):
    """Raised when uploaded bytes are not a decodable image."""


def _require_cv2():
    try:
        import cv2  # type: ignore
    except ImportError as exc:  # pragma: no cover - environment dependent
        raise ImportError(
            "opencv is required to decode uploaded images. "
            "Install the pose extras: pip install 'repsync[pose]'."
        ) from exc
    return cv2


def _require_numpy():
    try:
        import numpy as np  # type: ignore
    except ImportError as exc:  # pragma: no cover - environment dependent
        raise ImportError(
            "numpy is required to decode uploaded images. "
            "Install the pose extras: pip install 'repsync[pose]'."
        ) from exc
    return np


def decode_rgb(data: bytes) -> Any:
    """
    Decode an encoded image (JPEG, PNG, ...) into an RGB HxWx3 uint8 array.
    """
    if not data:
        raise ImageDecodeError("uploaded image is empty")
    cv2 = _require_cv2()
    np = _require_numpy()
    frame = cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_COLOR)
    if frame is None:
        raise ImageDecodeError("uploaded file is not a decodable image")
    return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
