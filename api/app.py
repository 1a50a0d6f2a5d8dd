from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from api.routes import analysis as analysis_routes
from api.routes import detector as detector_routes
from api.routes import scan as scan_routes
from api.services.detector import build_lifecycle
from repsync.config import Settings
from repsync.detector.lifecycle import DetectorLifecycle

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    lifecycle: Optional[DetectorLifecycle] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logging.getLogger("repsync").setLevel(settings.log_level)
        app.state.settings = settings
        app.state.lifecycle = lifecycle or build_lifecycle(settings)
        try:
            yield
        finally:
            app.state.lifecycle.teardown()
            logger.info("Detector lifecycle torn down on shutdown")

    app = FastAPI(
        title="Repsync Body Scan API",
        description="Pose detector lifecycle and body-symmetry analysis.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(detector_routes.router)
    app.include_router(analysis_routes.router)
    app.include_router(scan_routes.router)

    @app.get("/", include_in_schema=False)
    async def redirect_to_docs() -> RedirectResponse:
        return RedirectResponse(url="/docs")

    return app


app = create_app()
