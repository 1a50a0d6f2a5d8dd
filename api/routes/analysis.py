from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from api.schemas import AnalysisRequest, AnalysisResponse, SymmetryResult
from api.services.detector import get_lifecycle, get_settings
from repsync.analysis.symmetry import analyze_landmarks
from repsync.config import Settings
from repsync.detector.lifecycle import DetectorLifecycle, DetectorNotReadyError

router = APIRouter(prefix="/analysis", tags=["analysis"])


@router.post("", response_model=AnalysisResponse)
async def analyze_frame(
    payload: AnalysisRequest,
    lifecycle: DetectorLifecycle = Depends(get_lifecycle),
    settings: Settings = Depends(get_settings),
) -> AnalysisResponse:
    """
    Analyze one landmark frame captured by the client. Frames are accepted only while the
    detector is ready.
    """
    status = lifecycle.current_state()
    if not status.is_ready:
        raise HTTPException(status_code=409, detail=str(DetectorNotReadyError(status)))

    report = analyze_landmarks(payload.to_frame(), settings.thresholds)
    if report is None:
        return AnalysisResponse(computable=False)
    return AnalysisResponse(computable=True, result=SymmetryResult.from_report(report))
