"""Job management API: submit jobs, poll status, download outputs."""

from typing import List

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from pdftools.errors import (
    DispatcherUnavailable,
    FileNotFound,
    JobNotFound,
    TransportError,
    ValidationError,
)
from pdftools.jobs.models import JobStatus
from pdftools.api.v1.schemas import JobView, ProcessRequest, ProcessResponse

router = APIRouter()

# Set by main.py during lifespan
_service = None


def set_service(service):
    global _service
    _service = service


def _require_service():
    if _service is None:
        raise HTTPException(status_code=503, detail="Job service not initialized")
    return _service


@router.post("/process", response_model=ProcessResponse)
async def start_processing(request: ProcessRequest):
    """Create a job for already-uploaded files and start it in the background."""
    service = _require_service()
    try:
        job = await service.submit(
            operation_type=request.operation_type,
            input_file_ids=[str(f) for f in request.input_file_ids],
            options=request.options,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except DispatcherUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return ProcessResponse(job_id=job.id)


@router.get("/jobs", response_model=List[JobView])
async def list_jobs(status: JobStatus = Query(...)):
    service = _require_service()
    return [JobView.from_record(job) for job in service.list_jobs(status)]


@router.get("/jobs/{job_id}", response_model=JobView)
async def get_job(job_id: int):
    """Get the current status, progress and outputs of a job."""
    service = _require_service()
    try:
        job = service.get_job(job_id)
    except JobNotFound:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobView.from_record(job)


@router.get("/download/{job_id}/{file_index}")
async def download_output(job_id: int, file_index: int):
    """Stream one output file of a completed job."""
    service = _require_service()
    try:
        obj = service.open_output(job_id, file_index)
    except (JobNotFound, FileNotFound):
        raise HTTPException(status_code=404, detail="File not found")
    except TransportError as exc:
        raise HTTPException(status_code=500, detail=f"Download failed: {exc}")

    return Response(
        content=obj.data,
        media_type=obj.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{obj.key}"'},
    )
