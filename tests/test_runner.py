import pytest

from conftest import FakeVision, make_image, make_pdf, page_texts
from pdftools.errors import TransportError
from pdftools.jobs.models import JobCreate, JobStatus, OperationType
from pdftools.jobs.runner import JobRunner, band_progress
from pdftools.operations.ocr import FAILURE_MARKER
from pdftools.operations.registry import OperationRegistry, build_registry
from pdftools.operations.split import SplitOperation
from pdftools.storage.local import LocalBlobStore


class FlakyBlobStore(LocalBlobStore):
    def __init__(self, base_dir, fail_store=False):
        super().__init__(base_dir)
        self.fail_store = fail_store
        self.fetches = 0

    def fetch(self, file_id):
        self.fetches += 1
        return super().fetch(file_id)

    def store(self, data, name, mime_type):
        if self.fail_store:
            raise TransportError(f"Failed to store {name}: disk full")
        return super().store(data, name, mime_type)


def _submit(store, op, file_ids, options=None):
    return store.create(JobCreate(type=op, input_files=file_ids, options=options or {}))


def _assert_legal_history(history):
    statuses = [s for s, _ in history]
    progress = [p for _, p in history]
    assert statuses[0] == "processing"
    assert statuses[-1] in ("completed", "failed")
    assert all(s == "processing" for s in statuses[:-1])
    assert progress == sorted(progress)
    assert all(0 <= p <= 100 for p in progress)


@pytest.mark.parametrize("band, done, total, expected", [
    ((0, 30), 1, 2, 15),
    ((0, 30), 1, 4, 8),
    ((0, 30), 3, 4, 23),
    ((70, 90), 1, 3, 77),
    ((70, 100), 3, 3, 100),
])
def test_band_progress_rounds_half_up(band, done, total, expected):
    assert band_progress(band, done, total) == expected


def test_merge_job_progress_schedule(store, blobs, registry, upload):
    ids = [upload(make_pdf(2, "A")), upload(make_pdf(3, "B"))]
    job = _submit(store, OperationType.MERGE, ids)

    final = JobRunner(store, blobs, registry).run(job.id)

    assert final.status == JobStatus.COMPLETED
    assert final.progress == 100
    assert final.error is None
    assert final.completed_at is not None
    assert store.history == [
        ("processing", 0),
        ("processing", 15),
        ("processing", 30),
        ("processing", 70),
        ("processing", 100),
        ("completed", 100),
    ]
    merged = blobs.open_object(final.output_files[0])
    assert merged.mime_type == "application/pdf"
    assert page_texts(merged.data) == ["A1", "A2", "B1", "B2", "B3"]


def test_split_job_stores_outputs_in_range_order(store, blobs, registry, upload):
    doc_id = upload(make_pdf(3))
    job = _submit(store, OperationType.SPLIT, [doc_id],
                  {"ranges": [{"start": 1, "end": 2}, {"start": 3, "end": 3}]})

    final = JobRunner(store, blobs, registry).run(job.id)

    assert final.status == JobStatus.COMPLETED
    parts = [blobs.open_object(k).data for k in final.output_files]
    assert [page_texts(p) for p in parts] == [["P1", "P2"], ["P3"]]
    assert store.history == [
        ("processing", 0),
        ("processing", 30),
        ("processing", 70),
        ("processing", 85),
        ("processing", 100),
        ("completed", 100),
    ]


def test_image_ocr_partial_failure_completes(store, blobs, registry, upload):
    ids = [upload(make_image(10, 20), "ok.png", "image/png"),
           upload(b"corrupt", "bad.png", "image/png")]
    job = _submit(store, OperationType.IMAGE_OCR, ids)

    final = JobRunner(store, blobs, registry).run(job.id)

    assert final.status == JobStatus.COMPLETED
    assert len(final.output_files) == 1
    text = blobs.open_object(final.output_files[0]).data.decode("utf-8")
    assert "=== Image 1 ===\ntext of 10x20 image" in text
    assert f"=== Image 2 ===\n{FAILURE_MARKER}" in text
    # image-ocr reports 70-90 itself; the 70 checkpoint never pulls it back
    assert [p for _, p in store.history] == [0, 15, 30, 80, 90, 100, 100]
    _assert_legal_history(store.history)


def test_handler_failure_fails_job_without_outputs(store, blobs, registry, upload):
    doc_id = upload(make_pdf(2))
    job = _submit(store, OperationType.SPLIT, [doc_id], {"ranges": [{"start": 2, "end": 9}]})

    final = JobRunner(store, blobs, registry).run(job.id)

    assert final.status == JobStatus.FAILED
    assert "exceeds document length" in final.error
    assert final.output_files == []
    assert final.completed_at is not None
    assert store.history[-1] == ("failed", 30)
    _assert_legal_history(store.history)


def test_corrupt_document_fails_job(store, blobs, registry, upload):
    job = _submit(store, OperationType.COMPRESS, [upload(b"%PDF-garbage")])
    final = JobRunner(store, blobs, registry).run(job.id)
    assert final.status == JobStatus.FAILED
    assert final.error


def test_missing_input_during_fetch_fails_job(store, blobs, registry, upload):
    good = upload(make_pdf(1))
    job = _submit(store, OperationType.MERGE, [good, "404"])

    final = JobRunner(store, blobs, registry).run(job.id)

    assert final.status == JobStatus.FAILED
    assert final.error == "File 404 not found"
    assert final.output_files == []
    assert store.history[-1] == ("failed", 15)


def test_store_failure_fails_job(store, tmp_path, registry):
    blobs = FlakyBlobStore(str(tmp_path / "flaky"), fail_store=True)
    file_id = str(blobs.save_upload(make_pdf(1), "a.pdf", "application/pdf").id)
    job = _submit(store, OperationType.COMPRESS, [file_id])

    final = JobRunner(store, blobs, registry).run(job.id)

    assert final.status == JobStatus.FAILED
    assert "disk full" in final.error
    assert final.output_files == []
    assert store.history[-1] == ("failed", 70)


def test_unregistered_operation_fails_before_fetch(store, tmp_path):
    blobs = FlakyBlobStore(str(tmp_path / "flaky"))
    file_id = str(blobs.save_upload(make_pdf(1), "a.pdf", "application/pdf").id)
    job = _submit(store, OperationType.OCR, [file_id])

    final = JobRunner(store, blobs, OperationRegistry([SplitOperation()])).run(job.id)

    assert final.status == JobStatus.FAILED
    assert final.error == "Unsupported job type: ocr"
    assert blobs.fetches == 0
    assert store.history == [("processing", 0), ("failed", 0)]


def test_ocr_vision_failure_fails_job(store, blobs, upload):
    registry = build_registry(FakeVision(fail_documents=True))
    job = _submit(store, OperationType.OCR, [upload(make_pdf(1))])

    final = JobRunner(store, blobs, registry).run(job.id)

    assert final.status == JobStatus.FAILED
    assert "OCR processing failed" in final.error
