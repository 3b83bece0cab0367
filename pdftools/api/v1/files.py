"""File upload and expiry endpoints."""

from typing import List

from fastapi import APIRouter, File, HTTPException, UploadFile

from pdftools.config import settings
from pdftools.errors import TransportError
from pdftools.logger import logger
from pdftools.api.v1.schemas import CleanupResponse, UploadedFile, UploadResponse

router = APIRouter()

# Wired in during lifespan (same pattern as jobs.py)
_blobs = None


def set_blob_store(blobs):
    global _blobs
    _blobs = blobs


@router.post("/upload", response_model=UploadResponse)
async def upload_files(files: List[UploadFile] = File(...)):
    """Accept one or more files and register them for later processing."""
    if _blobs is None:
        raise HTTPException(status_code=503, detail="Blob store not ready")

    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")
    if len(files) > settings.max_upload_files:
        raise HTTPException(
            status_code=400,
            detail=f"Too many files (max {settings.max_upload_files})",
        )

    max_bytes = settings.max_upload_mb * 1024 * 1024
    uploaded = []
    for file in files:
        if file.content_type not in settings.allowed_mime_types:
            raise HTTPException(
                status_code=400,
                detail="Invalid file type. Only PDF, images, and Word documents are allowed.",
            )

        chunks = []
        total = 0
        while True:
            chunk = await file.read(1024 * 1024)  # 1 MB chunks
            if not chunk:
                break
            total += len(chunk)
            if total > max_bytes:
                raise HTTPException(
                    status_code=413,
                    detail=f"File too large (max {settings.max_upload_mb} MB)",
                )
            chunks.append(chunk)

        name = file.filename or "upload"
        try:
            record = _blobs.save_upload(b"".join(chunks), name, file.content_type)
        except TransportError as exc:
            raise HTTPException(status_code=500, detail="File upload failed") from exc

        uploaded.append(UploadedFile(
            id=record.id,
            name=record.original_name,
            size=record.size,
            type=record.mime_type,
        ))

    logger.info(f"Uploaded {len(uploaded)} file(s)")
    return UploadResponse(files=uploaded)


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup_expired():
    """Delete uploads whose retention period has passed."""
    if _blobs is None:
        raise HTTPException(status_code=503, detail="Blob store not ready")
    try:
        deleted = _blobs.cleanup_expired()
    except TransportError as exc:
        logger.error(f"Cleanup failed: {exc}")
        raise HTTPException(status_code=500, detail="Cleanup failed")
    return CleanupResponse(deleted_count=deleted)
