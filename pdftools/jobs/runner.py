"""Job runner: drives one job from pending to a terminal state.

Progress follows a fixed schedule so pollers see the same sequence for the
same inputs:

    fetch inputs      0 -> 30
    handler done      70 (image-ocr reports 70 -> 90 while it runs)
    store outputs     70 -> 100
"""

import math
import time
from typing import List

from pdftools.errors import PdfToolsError
from pdftools.jobs.models import JobRecord, JobStatus
from pdftools.jobs.store import JobStore
from pdftools.logger import logger
from pdftools.operations.base import OperationResult
from pdftools.operations.registry import OperationRegistry
from pdftools.storage.base import BlobStore

FETCH_BAND = (0, 30)
HANDLER_BAND = (70, 90)
STORE_BAND = (70, 100)
HANDLER_CHECKPOINT = 70


def band_progress(band, done: int, total: int) -> int:
    """Scale done/total into a (low, high) progress band, rounding halves up."""
    low, high = band
    if total <= 0:
        return high
    return low + math.floor(done / total * (high - low) + 0.5)


class JobRunner:
    """Executes jobs against a store, a blob store and an operation registry.

    run() is synchronous and is the only writer of its job's record for the
    job's whole lifetime.
    """

    def __init__(self, store: JobStore, blobs: BlobStore, registry: OperationRegistry):
        self._store = store
        self._blobs = blobs
        self._registry = registry

    def run(self, job_id: int) -> JobRecord:
        job = self._store.get(job_id)
        tracker = _ProgressTracker(self._store, job_id)
        started = time.monotonic()

        self._store.update(job_id, status=JobStatus.PROCESSING, progress=0)
        logger.info(f"Job {job_id} ({job.type.value}) started with {len(job.input_files)} input(s)")

        try:
            operation = self._registry.get(job.type)

            inputs = self._fetch_inputs(job, tracker)

            progress_cb = None
            if operation.spec().reports_progress:
                def progress_cb(done, total, message):
                    tracker.report(band_progress(HANDLER_BAND, done, total))

            result = operation.execute(inputs, job.options, progress_cb)
            tracker.report(HANDLER_CHECKPOINT)

            keys = self._store_outputs(result, tracker)
        except Exception as exc:
            message = _error_message(exc)
            if not isinstance(exc, PdfToolsError):
                logger.exception(f"Job {job_id} crashed")
            logger.error(f"Job {job_id} failed after {time.monotonic() - started:.2f}s: {message}")
            return self._store.update(job_id, status=JobStatus.FAILED, error=message)

        logger.info(
            f"Job {job_id} completed in {time.monotonic() - started:.2f}s "
            f"with {len(keys)} output(s)"
        )
        return self._store.update(
            job_id,
            status=JobStatus.COMPLETED,
            progress=100,
            output_files=keys,
        )

    def _fetch_inputs(self, job: JobRecord, tracker: "_ProgressTracker") -> List[bytes]:
        total = len(job.input_files)
        buffers = []
        for i, file_id in enumerate(job.input_files, start=1):
            buffers.append(self._blobs.fetch(file_id))
            tracker.report(band_progress(FETCH_BAND, i, total))
        return buffers

    def _store_outputs(self, result: OperationResult, tracker: "_ProgressTracker") -> List[str]:
        total = len(result.outputs)
        keys = []
        for i, (data, name) in enumerate(zip(result.outputs, result.names)):
            keys.append(self._blobs.store(data, name, result.mime_type(i)))
            tracker.report(band_progress(STORE_BAND, i + 1, total))
        return keys


class _ProgressTracker:
    """Publishes progress to the store, never moving backwards."""

    def __init__(self, store: JobStore, job_id: int):
        self._store = store
        self._job_id = job_id
        self._current = 0

    def report(self, value: int) -> None:
        if value <= self._current:
            return
        self._current = value
        self._store.update(self._job_id, progress=value)


def _error_message(exc: Exception) -> str:
    message = str(exc).strip()
    return message or type(exc).__name__
