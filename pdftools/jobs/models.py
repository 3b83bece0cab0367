"""Job record data model for async processing."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# Legal status moves; terminal states have none.
ALLOWED_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.PROCESSING},
    JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


class OperationType(str, Enum):
    MERGE = "merge"
    SPLIT = "split"
    COMPRESS = "compress"
    PDF_TO_IMAGE = "pdf-to-image"
    IMAGE_TO_PDF = "image-to-pdf"
    OCR = "ocr"
    IMAGE_OCR = "image-ocr"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobCreate(BaseModel):
    """Fields supplied by the submitter; the store fills in the rest."""
    type: OperationType
    input_files: List[str] = Field(min_length=1)
    options: Dict[str, Any] = Field(default_factory=dict)


class JobRecord(BaseModel):
    """Tracks the lifecycle of one document transformation."""
    id: int
    type: OperationType
    status: JobStatus = JobStatus.PENDING
    input_files: List[str]
    output_files: List[str] = Field(default_factory=list)
    options: Dict[str, Any] = Field(default_factory=dict)
    progress: int = 0
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
