"""Job repository interface and the in-memory implementation."""

import itertools
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from pdftools.errors import InvalidJobTransition, JobNotFound
from pdftools.jobs.models import (
    ALLOWED_TRANSITIONS,
    JobCreate,
    JobRecord,
    JobStatus,
    utcnow,
)

# Fields a caller may change through update(); id, type, inputs and
# timestamps are owned by the store.
UPDATABLE_FIELDS = frozenset({"status", "progress", "output_files", "error"})


class JobStore(ABC):
    """Abstract job repository.

    Implementations must make update() atomic with respect to get(): a reader
    sees the record either entirely before or entirely after an update.
    """

    @abstractmethod
    def create(self, job: JobCreate) -> JobRecord:
        """Insert a new pending record with progress 0 and a fresh id."""
        ...

    @abstractmethod
    def get(self, job_id: int) -> JobRecord:
        """Return a snapshot of the record. Raises JobNotFound."""
        ...

    @abstractmethod
    def update(self, job_id: int, **fields: Any) -> JobRecord:
        """Merge fields into the record and return the new snapshot.

        Raises JobNotFound for unknown ids and InvalidJobTransition when the
        merge would break a record invariant.
        """
        ...

    @abstractmethod
    def list_by_status(self, status: JobStatus) -> List[JobRecord]:
        ...


def apply_update(current: JobRecord, fields: Dict[str, Any]) -> JobRecord:
    """Validate and merge a partial update, returning the merged record.

    Shared by store implementations so every backend enforces the same
    lifecycle rules.
    """
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise InvalidJobTransition(f"Fields not updatable: {sorted(unknown)}")

    if current.status.is_terminal:
        raise InvalidJobTransition(
            f"Job {current.id} is {current.status.value} and can no longer change"
        )

    merged = current.model_copy(deep=True)

    if "status" in fields:
        new_status = JobStatus(fields["status"])
        if new_status != current.status:
            if new_status not in ALLOWED_TRANSITIONS[current.status]:
                raise InvalidJobTransition(
                    f"Job {current.id}: {current.status.value} -> {new_status.value} not allowed"
                )
            merged.status = new_status

    if "progress" in fields:
        progress = int(fields["progress"])
        if not 0 <= progress <= 100:
            raise InvalidJobTransition(f"Progress {progress} outside [0, 100]")
        if progress < current.progress:
            raise InvalidJobTransition(
                f"Progress may not go backwards ({current.progress} -> {progress})"
            )
        merged.progress = progress

    if "output_files" in fields:
        merged.output_files = list(fields["output_files"])
    if "error" in fields:
        merged.error = fields["error"]

    if merged.status == JobStatus.COMPLETED:
        if not merged.output_files or merged.error:
            raise InvalidJobTransition(
                f"Job {current.id}: completed jobs need outputs and no error"
            )
    elif merged.status == JobStatus.FAILED:
        if not merged.error or merged.output_files:
            raise InvalidJobTransition(
                f"Job {current.id}: failed jobs need an error and no outputs"
            )
    elif merged.output_files or merged.error:
        raise InvalidJobTransition(
            f"Job {current.id}: outputs and errors are only set on terminal status"
        )

    if merged.status.is_terminal:
        merged.completed_at = utcnow()
    return merged


class InMemoryJobStore(JobStore):
    """Non-durable store; one lock guards the index and the id counter."""

    def __init__(self):
        self._jobs: Dict[int, JobRecord] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create(self, job: JobCreate) -> JobRecord:
        with self._lock:
            record = JobRecord(
                id=next(self._ids),
                type=job.type,
                input_files=list(job.input_files),
                options=dict(job.options),
            )
            self._jobs[record.id] = record
            return record.model_copy(deep=True)

    def get(self, job_id: int) -> JobRecord:
        with self._lock:
            record = self._jobs.get(job_id)
            if record is None:
                raise JobNotFound(job_id)
            return record.model_copy(deep=True)

    def update(self, job_id: int, **fields: Any) -> JobRecord:
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise JobNotFound(job_id)
            merged = apply_update(current, fields)
            self._jobs[job_id] = merged
            return merged.model_copy(deep=True)

    def list_by_status(self, status: JobStatus) -> List[JobRecord]:
        with self._lock:
            return [
                job.model_copy(deep=True)
                for job in self._jobs.values()
                if job.status == status
            ]
