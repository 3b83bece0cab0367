import io
from typing import List

import fitz
import pytest
from PIL import Image

from pdftools.errors import VisionError
from pdftools.jobs.store import InMemoryJobStore
from pdftools.operations.registry import build_registry
from pdftools.storage.local import LocalBlobStore


def make_pdf(pages: int, label: str = "P", with_image: bool = False) -> bytes:
    """PDF whose page i carries the text '<label><i>'."""
    doc = fitz.open()
    for i in range(1, pages + 1):
        page = doc.new_page(width=300, height=400)
        page.insert_text((40, 60), f"{label}{i}", fontsize=24)
        if with_image:
            page.insert_image(fitz.Rect(40, 100, 260, 320), stream=make_image(220, 220))
    data = doc.tobytes()
    doc.close()
    return data


def make_image(width: int = 64, height: int = 48, fmt: str = "PNG", color=(200, 30, 30)) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", (width, height), color).save(out, format=fmt)
    return out.getvalue()


def page_texts(pdf: bytes) -> List[str]:
    with fitz.open(stream=pdf, filetype="pdf") as doc:
        return [page.get_text().strip() for page in doc]


class FakeVision:
    """Reads image dimensions instead of text; undecodable images fail."""

    def __init__(self, fail_documents: bool = False):
        self.fail_documents = fail_documents
        self.image_calls = 0

    def extract_text(self, image: bytes) -> str:
        self.image_calls += 1
        try:
            with Image.open(io.BytesIO(image)) as img:
                width, height = img.size
        except OSError as exc:
            raise VisionError(f"unreadable image: {exc}")
        return f"text of {width}x{height} image"

    def extract_document_text(self, pdf: bytes) -> str:
        if self.fail_documents:
            raise VisionError("Failed to extract text from PDF")
        return "\n".join(page_texts(pdf))


class RecordingJobStore(InMemoryJobStore):
    """Remembers (status, progress) after every successful update."""

    def __init__(self):
        super().__init__()
        self.history = []

    def update(self, job_id, **fields):
        record = super().update(job_id, **fields)
        self.history.append((record.status.value, record.progress))
        return record


@pytest.fixture
def vision():
    return FakeVision()


@pytest.fixture
def registry(vision):
    return build_registry(vision, render_dpi=72)


@pytest.fixture
def blobs(tmp_path):
    return LocalBlobStore(str(tmp_path / "blobs"), ttl_hours=24)


@pytest.fixture
def store():
    return RecordingJobStore()


@pytest.fixture
def upload(blobs):
    """Save bytes as an upload and return its id as a string."""
    def _upload(data: bytes, name: str = "input.pdf", mime: str = "application/pdf") -> str:
        return str(blobs.save_upload(data, name, mime).id)
    return _upload
