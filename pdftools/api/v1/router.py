"""Aggregate all v1 API routers."""

from fastapi import APIRouter

from pdftools.api.v1.files import router as files_router
from pdftools.api.v1.health import router as health_router
from pdftools.api.v1.jobs import router as jobs_router
from pdftools.api.v1.operations_api import router as operations_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(files_router, tags=["files"])
v1_router.include_router(jobs_router, tags=["jobs"])
v1_router.include_router(operations_router, tags=["operations"])
