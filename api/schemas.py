import math
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from repsync.analysis.symmetry import ShoulderSymmetry, SpineAlignment, SymmetryReport
from repsync.detector.backends import ComputeBackend
from repsync.detector.lifecycle import LifecycleState, LifecycleStatus
from repsync.vision.landmarks import Landmark


class LandmarkIn(BaseModel):
    x: float = Field(..., description="Normalized horizontal image coordinate.")
    y: float = Field(..., description="Normalized vertical image coordinate.")
    z: float = Field(0.0, description="Relative depth, if the detector provides it.")
    visibility: Optional[float] = Field(None, description="Detector confidence for this joint.")

    @field_validator("x", "y", "z")
    @classmethod
    def coordinates_are_finite(cls, v: float) -> float:
        if math.isnan(v) or math.isinf(v):
            raise ValueError("landmark coordinates must be finite numbers")
        return v

    def to_landmark(self) -> Landmark:
        return Landmark(x=self.x, y=self.y, z=self.z, visibility=self.visibility)


class AnalysisRequest(BaseModel):
    """
    One landmark frame, one entry per joint slot in detector order. Absent slots are null.
    """
    landmarks: List[Optional[LandmarkIn]] = Field(
        default_factory=list,
        description="Landmarks indexed by joint (nose=0, left shoulder=11, ...).",
    )

    def to_frame(self) -> List[Optional[Landmark]]:
        return [lm.to_landmark() if lm is not None else None for lm in self.landmarks]


class SymmetryResult(BaseModel):
    shoulder_symmetry: ShoulderSymmetry
    spine_alignment: SpineAlignment
    left_arm_length: float
    right_arm_length: float
    left_leg_length: float
    right_leg_length: float
    observations: List[str]

    @classmethod
    def from_report(cls, report: SymmetryReport) -> "SymmetryResult":
        return cls(**report.to_dict())


class AnalysisResponse(BaseModel):
    computable: bool = Field(..., description="False when the frame was empty or missing required joints.")
    result: Optional[SymmetryResult] = None


class DetectorStateResponse(BaseModel):
    state: LifecycleState
    reason: Optional[str] = Field(None, description="Failure message when state is 'failed'.")
    backend: Optional[ComputeBackend] = None

    @classmethod
    def from_status(cls, status: LifecycleStatus) -> "DetectorStateResponse":
        return cls(state=status.state, reason=status.reason, backend=status.backend)
