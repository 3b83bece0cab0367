"""Health check endpoint."""

import platform
import sys

import fitz
from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
async def health_check():
    """Service health and library versions."""
    return {
        "status": "healthy",
        "pymupdf_version": fitz.VersionBind,
        "python_version": sys.version,
        "platform": platform.platform(),
    }
