from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from api.schemas import AnalysisResponse, SymmetryResult
from api.services import images
from api.services.detector import get_lifecycle, get_settings
from repsync.config import Settings
from repsync.detector.lifecycle import DetectorLifecycle, DetectorNotReadyError
from repsync.scanner import BodyScanner

router = APIRouter(prefix="/scan", tags=["scan"])


@router.post("", response_model=AnalysisResponse)
async def scan_image(
    image: UploadFile = File(..., description="Encoded camera frame (JPEG or PNG)."),
    lifecycle: DetectorLifecycle = Depends(get_lifecycle),
    settings: Settings = Depends(get_settings),
) -> AnalysisResponse:
    """
    Run the ready pose detector on one uploaded frame and analyze the detected landmarks.
    Detection runs on the event loop so a concurrent teardown cannot release the model mid-frame.
    """
    data = await image.read()
    await image.close()
    try:
        rgb = images.decode_rgb(data)
    except images.ImageDecodeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        report = BodyScanner(lifecycle, settings.thresholds).scan(rgb)
    except DetectorNotReadyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    if report is None:
        return AnalysisResponse(computable=False)
    return AnalysisResponse(computable=True, result=SymmetryResult.from_report(report))
