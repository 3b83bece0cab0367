import asyncio

import pytest

from conftest import make_pdf, page_texts
from pdftools.errors import DispatcherUnavailable, FileNotFound, JobNotFound, ValidationError
from pdftools.jobs.in_process import InProcessDispatcher
from pdftools.jobs.models import JobStatus
from pdftools.jobs.runner import JobRunner
from pdftools.jobs.service import JobService


@pytest.fixture
def wiring(store, blobs, registry):
    runner = JobRunner(store, blobs, registry)
    dispatcher = InProcessDispatcher(runner.run, shutdown_grace_seconds=5)
    return JobService(store, blobs, dispatcher), dispatcher


def _run(dispatcher, coro_fn):
    async def scenario():
        await dispatcher.start()
        try:
            return await coro_fn()
        finally:
            await dispatcher.wait_idle()
            await dispatcher.stop()
    return asyncio.run(scenario())


def test_submit_returns_pending_job_and_runs_it(wiring, upload):
    service, dispatcher = wiring
    ids = [upload(make_pdf(2, "A")), upload(make_pdf(3, "B"))]

    async def go():
        job = await service.submit("merge", ids)
        assert job.status == JobStatus.PENDING
        return job

    job = _run(dispatcher, go)
    final = service.get_job(job.id)
    assert final.status == JobStatus.COMPLETED
    assert page_texts(service.open_output(job.id, 0).data) == ["A1", "A2", "B1", "B2", "B3"]


def test_many_jobs_run_concurrently(wiring, upload):
    service, dispatcher = wiring
    doc = upload(make_pdf(3))

    async def go():
        return [await service.submit("split", [doc], {"ranges": [{"start": i, "end": i}]})
                for i in (1, 2, 3)]

    jobs = _run(dispatcher, go)
    for i, job in enumerate(jobs, start=1):
        final = service.get_job(job.id)
        assert final.status == JobStatus.COMPLETED
        assert page_texts(service.open_output(job.id, 0).data) == [f"P{i}"]


def test_unknown_file_id_never_creates_job(wiring, store, upload):
    service, dispatcher = wiring
    good = upload(make_pdf(1))

    async def go():
        with pytest.raises(ValidationError, match="File 999 not found"):
            await service.submit("merge", [good, "999"])

    _run(dispatcher, go)
    with pytest.raises(JobNotFound):
        store.get(1)


@pytest.mark.parametrize("op, files", [
    ("rotate", ["1"]),
    ("merge", []),
])
def test_malformed_submission_rejected(wiring, store, upload, op, files):
    service, dispatcher = wiring
    upload(make_pdf(1))

    async def go():
        with pytest.raises(ValidationError):
            await service.submit(op, files)

    _run(dispatcher, go)
    assert store.list_by_status(JobStatus.PENDING) == []


def test_open_output_requires_completed_job_and_valid_index(wiring, store, upload):
    service, dispatcher = wiring
    doc = upload(make_pdf(1))

    async def go():
        return await service.submit("compress", [doc])

    job = _run(dispatcher, go)
    with pytest.raises(FileNotFound):
        service.open_output(job.id, 1)
    with pytest.raises(FileNotFound):
        service.open_output(job.id, -1)
    with pytest.raises(JobNotFound):
        service.open_output(job.id + 100, 0)


def test_open_output_on_failed_job(wiring, upload):
    service, dispatcher = wiring
    doc = upload(make_pdf(1))

    async def go():
        return await service.submit("split", [doc], {"ranges": [{"start": 4, "end": 4}]})

    job = _run(dispatcher, go)
    assert service.get_job(job.id).status == JobStatus.FAILED
    with pytest.raises(JobNotFound):
        service.open_output(job.id, 0)


class BrokenDispatcher(InProcessDispatcher):
    async def dispatch(self, job_id):
        raise RuntimeError("executor shut down")


def test_submit_to_stopped_dispatcher_creates_nothing(store, blobs, registry, upload):
    runner = JobRunner(store, blobs, registry)
    service = JobService(store, blobs, InProcessDispatcher(runner.run))
    doc = upload(make_pdf(1))

    with pytest.raises(DispatcherUnavailable):
        asyncio.run(service.submit("compress", [doc]))

    with pytest.raises(JobNotFound):
        store.get(1)
    assert store.list_by_status(JobStatus.PENDING) == []


def test_dispatch_failure_closes_out_the_record(store, blobs, registry, upload):
    runner = JobRunner(store, blobs, registry)
    dispatcher = BrokenDispatcher(runner.run)
    service = JobService(store, blobs, dispatcher)
    doc = upload(make_pdf(1))

    async def go():
        await dispatcher.start()
        with pytest.raises(DispatcherUnavailable, match="executor shut down"):
            await service.submit("compress", [doc])

    asyncio.run(go())
    job = store.get(1)
    assert job.status == JobStatus.FAILED
    assert "executor shut down" in job.error
    assert job.output_files == []
    assert job.completed_at is not None
    assert store.list_by_status(JobStatus.PENDING) == []


@pytest.mark.parametrize("files", [None, 5])
def test_non_list_input_ids_are_a_validation_error(wiring, store, files):
    service, dispatcher = wiring

    async def go():
        with pytest.raises(ValidationError, match="Invalid job data"):
            await service.submit("merge", files)

    _run(dispatcher, go)
    assert store.list_by_status(JobStatus.PENDING) == []
