from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from api.schemas import DetectorStateResponse
from api.services.detector import get_lifecycle
from repsync.detector.lifecycle import DetectorLifecycle

router = APIRouter(prefix="/detector", tags=["detector"])


@router.get("", response_model=DetectorStateResponse)
async def read_detector_state(
    lifecycle: DetectorLifecycle = Depends(get_lifecycle),
) -> DetectorStateResponse:
    return DetectorStateResponse.from_status(lifecycle.current_state())


@router.post("/initialize", response_model=DetectorStateResponse)
async def initialize_detector(
    reload: bool = Query(False, description="Replace a ready detector with a fresh session."),
    lifecycle: DetectorLifecycle = Depends(get_lifecycle),
) -> DetectorStateResponse:
    """
    Run permission, backend and model setup. Setup failures are reported in the returned state
    rather than as HTTP errors.
    """
    status = await lifecycle.initialize(reload=reload)
    return DetectorStateResponse.from_status(status)


@router.post("/teardown", response_model=DetectorStateResponse)
async def teardown_detector(
    lifecycle: DetectorLifecycle = Depends(get_lifecycle),
) -> DetectorStateResponse:
    lifecycle.teardown()
    return DetectorStateResponse.from_status(lifecycle.current_state())
