"""
TSX Render API

Main FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tsxrender.api import api_router
from tsxrender.core.config import get_settings
from tsxrender.core.exceptions import RenderPipelineError, ValidationError
from tsxrender.core.log import configure_logging
from tsxrender.core.storage import ensure_directories
from tsxrender.schemas.render import HealthResponse
from tsxrender.services.reaper import ResourceReaper
from tsxrender.services.render_orchestrator import RenderOrchestrator
from tsxrender.tasks.remotion_runner import RemotionCliEngine

logger = logging.getLogger("tsxrender.api")

# Load settings
settings = get_settings()
configure_logging(debug=settings.debug)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: storage areas, orchestrator, browser warm-up, periodic sweep.
    Shutdown: stop the sweep. The browser is never torn down explicitly.
    """
    ensure_directories(settings)

    engine = RemotionCliEngine(settings)
    app.state.orchestrator = RenderOrchestrator(engine=engine, settings=settings)

    await engine.ensure_browser()

    reaper = ResourceReaper(settings)
    reaper.start()
    app.state.reaper = reaper

    logger.info(f"{settings.app_name} ready")
    try:
        yield
    finally:
        await reaper.stop()


app = FastAPI(
    title=settings.app_name,
    description="Renders TSX components to MP4 with Remotion",
    version=settings.version,
    lifespan=lifespan,
)

# CORS configuration (loaded from environment)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Job-Id"],
)


@app.exception_handler(RenderPipelineError)
async def render_pipeline_error_handler(request: Request, exc: RenderPipelineError):
    """Convert pipeline failures to the structured error payload."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies get the same 400 payload as other invalid input."""
    details = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    error = ValidationError("Invalid request body", details=details)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# Include API routes
app.include_router(api_router)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness check for Docker/orchestration."""
    return HealthResponse(service=settings.service_name, version=settings.version)
