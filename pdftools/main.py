"""PDF Tools Service - FastAPI application."""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from pdftools.api.v1 import files as files_api
from pdftools.api.v1 import jobs as jobs_api
from pdftools.api.v1 import operations_api
from pdftools.api.v1.health import router as health_root_router
from pdftools.api.v1.router import v1_router
from pdftools.config import Settings, settings
from pdftools.jobs.in_process import InProcessDispatcher
from pdftools.jobs.runner import JobRunner
from pdftools.jobs.service import JobService
from pdftools.jobs.store import InMemoryJobStore
from pdftools.logger import logger
from pdftools.operations.registry import build_registry
from pdftools.storage.local import LocalBlobStore
from pdftools.vision.base import DisabledVision, VisionService
from pdftools.vision.google import GoogleVision


def build_vision(config: Settings) -> VisionService:
    if config.vision_provider == "google":
        return GoogleVision(
            project=config.google_cloud_project,
            key_path=config.google_cloud_key_path,
        )
    if config.vision_provider == "disabled":
        return DisabledVision()
    raise ValueError(f"Unknown vision provider '{config.vision_provider}'")


def build_service(config: Settings, vision: Optional[VisionService] = None):
    """Wire store, blob store, registry, runner and dispatcher together.

    Returns (service, dispatcher, registry).
    """
    blobs = LocalBlobStore(config.data_dir, ttl_hours=config.file_ttl_hours)
    registry = build_registry(
        vision or build_vision(config),
        render_dpi=config.render_dpi,
        default_quality=config.default_compress_quality,
    )
    store = InMemoryJobStore()
    runner = JobRunner(store, blobs, registry)
    dispatcher = InProcessDispatcher(
        runner.run,
        shutdown_grace_seconds=config.shutdown_grace_seconds,
    )
    return JobService(store, blobs, dispatcher), dispatcher, registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    logger.info(f"Starting PDF Tools Service on port {settings.port}")
    logger.info(f"Data dir: {settings.data_dir}")
    logger.info(f"Vision provider: {settings.vision_provider}")

    service, dispatcher, registry = build_service(
        settings, vision=getattr(app.state, "vision", None)
    )
    await dispatcher.start()
    logger.info("Job dispatcher started")

    # Wire components into API endpoints
    jobs_api.set_service(service)
    files_api.set_blob_store(service.blobs)
    operations_api.set_registry(registry)
    app.state.service = service
    app.state.dispatcher = dispatcher

    yield

    logger.info("Shutting down PDF Tools Service")
    await dispatcher.stop()
    removed = service.blobs.cleanup_expired()
    if removed:
        logger.info(f"Removed {removed} expired upload(s)")


app = FastAPI(
    title="PDF Tools Service",
    description="Background PDF and image transformation jobs with progress polling",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    start = time.monotonic()
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        duration_ms = (time.monotonic() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} in {duration_ms:.0f}ms"
        )
    return response


# Mount routers
app.include_router(health_root_router, tags=["health"])  # GET /health at root
app.include_router(v1_router)  # All /api/v1/* endpoints
