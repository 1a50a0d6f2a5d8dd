"""repsync: body-symmetry scanning on top of 2D pose landmarks.

This package hosts the detector lifecycle (permission, backend, model load),
the landmark frame model, and the symmetry analysis that turns one frame of
landmarks into a posture report.
"""

__all__ = [
    "cli",
    "config",
    "scanner",
]

__version__ = "0.1.0"
