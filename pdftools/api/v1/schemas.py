"""Request and response bodies for the v1 API (camelCase on the wire)."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pdftools.jobs.models import JobRecord


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProcessRequest(CamelModel):
    operation_type: str
    input_file_ids: List[Union[str, int]]
    options: Optional[Dict[str, Any]] = None


class ProcessResponse(CamelModel):
    job_id: int


class JobView(CamelModel):
    id: int
    type: str
    status: str
    progress: int
    error: Optional[str] = None
    input_files: List[str] = Field(default_factory=list)
    output_files: List[str] = Field(default_factory=list)
    options: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, job: JobRecord) -> "JobView":
        return cls(
            id=job.id,
            type=job.type.value,
            status=job.status.value,
            progress=job.progress,
            error=job.error,
            input_files=job.input_files,
            output_files=job.output_files,
            options=job.options,
            created_at=job.created_at,
            completed_at=job.completed_at,
        )


class UploadedFile(CamelModel):
    id: int
    name: str
    size: int
    type: str


class UploadResponse(CamelModel):
    files: List[UploadedFile]


class CleanupResponse(CamelModel):
    deleted_count: int
