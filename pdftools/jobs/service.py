"""Job service: submission, status queries and output retrieval.

Framework-agnostic; the HTTP layer translates its exceptions to responses.
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from pdftools.errors import DispatcherUnavailable, FileNotFound, JobNotFound, ValidationError
from pdftools.jobs.dispatcher import JobDispatcher
from pdftools.jobs.models import JobCreate, JobRecord, JobStatus
from pdftools.jobs.store import JobStore
from pdftools.logger import logger
from pdftools.storage.base import BlobStore, StoredObject


class JobService:
    def __init__(self, store: JobStore, blobs: BlobStore, dispatcher: JobDispatcher):
        self._store = store
        self._blobs = blobs
        self._dispatcher = dispatcher

    @property
    def blobs(self) -> BlobStore:
        return self._blobs

    async def submit(
        self,
        operation_type: str,
        input_file_ids: List[str],
        options: Optional[Dict[str, Any]] = None,
    ) -> JobRecord:
        """Validate a submission, create the job and start it.

        Returns as soon as the record exists. Raises ValidationError (and
        creates nothing) for a malformed payload or an unknown file id, and
        DispatcherUnavailable when jobs cannot be started.
        """
        try:
            request = JobCreate(
                type=operation_type,
                input_files=[str(f) for f in input_file_ids],
                options=options or {},
            )
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid job data: {exc.errors()[0]['msg']}") from exc
        except TypeError as exc:
            raise ValidationError(f"Invalid job data: {exc}") from exc

        for file_id in request.input_files:
            try:
                self._blobs.get_file(file_id)
            except FileNotFound as exc:
                raise ValidationError(str(exc)) from exc

        if not self._dispatcher.accepting_jobs:
            raise DispatcherUnavailable("Job dispatcher is not accepting jobs")

        job = self._store.create(request)
        logger.info(f"Job {job.id} created: {job.type.value} on {job.input_files}")
        try:
            await self._dispatcher.dispatch(job.id)
        except Exception as exc:
            # No runner will own this record; close it out so it never sits in pending.
            logger.error(f"Job {job.id} could not be dispatched: {exc}")
            self._store.update(job.id, status=JobStatus.PROCESSING)
            self._store.update(
                job.id, status=JobStatus.FAILED, error=f"Job could not be started: {exc}"
            )
            raise DispatcherUnavailable(f"Job {job.id} could not be started: {exc}") from exc
        return job

    def get_job(self, job_id: int) -> JobRecord:
        return self._store.get(job_id)

    def list_jobs(self, status: JobStatus) -> List[JobRecord]:
        return self._store.list_by_status(status)

    def open_output(self, job_id: int, index: int) -> StoredObject:
        """Read output `index` of a completed job.

        Raises JobNotFound when the job is unknown or not completed, and
        FileNotFound when the index is out of range.
        """
        job = self._store.get(job_id)
        if job.status != JobStatus.COMPLETED:
            raise JobNotFound(job_id)
        if not 0 <= index < len(job.output_files):
            raise FileNotFound(f"{job_id}/{index}")
        return self._blobs.open_object(job.output_files[index])
