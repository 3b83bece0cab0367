"""Text extraction operations backed by the vision service."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from pdftools.errors import OperationError, PartialItemError, VisionError
from pdftools.jobs.models import OperationType
from pdftools.logger import logger
from pdftools.operations.base import (
    Operation,
    OperationResult,
    OperationSpec,
    ProgressCallback,
    output_name,
)
from pdftools.vision.base import VisionService

FAILURE_MARKER = "OCR processing failed"


class OcrOperation(Operation):
    """Whole-document text extraction. A vision failure fails the job."""

    def __init__(self, vision: VisionService):
        self._vision = vision

    def spec(self) -> OperationSpec:
        return OperationSpec(
            operation_type=OperationType.OCR,
            name="PDF OCR",
            description="Extract the text of a PDF document.",
        )

    def run(
        self,
        inputs: Sequence[bytes],
        options: Dict[str, Any],
        progress_cb: Optional[ProgressCallback] = None,
    ) -> OperationResult:
        try:
            text = self._vision.extract_document_text(inputs[0])
        except VisionError as exc:
            raise OperationError(f"OCR processing failed: {exc}") from exc

        result = OperationResult()
        result.add(text.encode("utf-8"), output_name("extracted-text", "txt"))
        return result


@dataclass(frozen=True)
class ItemOutcome:
    """Result of extracting one image: text on success, error otherwise."""
    index: int
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def section(self) -> str:
        body = self.text if self.ok else FAILURE_MARKER
        return f"=== Image {self.index} ===\n{body}\n\n"


class ImageOcrOperation(Operation):
    """Per-image text extraction.

    A failing image does not fail the job: its section carries
    FAILURE_MARKER and the remaining images are still processed.
    """

    def __init__(self, vision: VisionService):
        self._vision = vision

    def spec(self) -> OperationSpec:
        return OperationSpec(
            operation_type=OperationType.IMAGE_OCR,
            name="Image OCR",
            min_inputs=1,
            max_inputs=None,
            description="Extract text from each image into one text file.",
            reports_progress=True,
        )

    def run(
        self,
        inputs: Sequence[bytes],
        options: Dict[str, Any],
        progress_cb: Optional[ProgressCallback] = None,
    ) -> OperationResult:
        total = len(inputs)
        outcomes: List[ItemOutcome] = []
        for index, image in enumerate(inputs, start=1):
            outcomes.append(self._extract(index, image))
            if progress_cb:
                progress_cb(index, total, f"Extracted image {index} of {total}")

        failed = sum(1 for o in outcomes if not o.ok)
        if failed:
            logger.warning(f"image-ocr: {failed} of {total} image(s) failed")

        combined = "".join(o.section() for o in outcomes)
        result = OperationResult()
        result.add(combined.encode("utf-8"), output_name("extracted-text", "txt"))
        return result

    def _extract(self, index: int, image: bytes) -> ItemOutcome:
        try:
            return ItemOutcome(index=index, text=self._vision.extract_text(image))
        except Exception as exc:
            err = PartialItemError(index, str(exc))
            logger.warning(f"OCR failed for image {index}: {err}")
            return ItemOutcome(index=index, error=str(err))
