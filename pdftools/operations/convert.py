"""PDF <-> image conversions."""

from typing import Any, Dict, Literal, Optional, Sequence

from pydantic import BaseModel

from pdftools.jobs.models import OperationType
from pdftools.operations.base import (
    Operation,
    OperationResult,
    OperationSpec,
    ProgressCallback,
    output_name,
    parse_options,
)
from pdftools.processing.pdf import images_to_pdf, render_pages


class PdfToImageOptions(BaseModel):
    format: Literal["png", "jpg"] = "png"


class PdfToImageOperation(Operation):
    """Render every page of a PDF to its own image."""

    def __init__(self, dpi: int = 150):
        self._dpi = dpi

    def spec(self) -> OperationSpec:
        return OperationSpec(
            operation_type=OperationType.PDF_TO_IMAGE,
            name="PDF to Image",
            description="One PNG or JPG per page, in page order.",
        )

    def run(
        self,
        inputs: Sequence[bytes],
        options: Dict[str, Any],
        progress_cb: Optional[ProgressCallback] = None,
    ) -> OperationResult:
        fmt = parse_options(PdfToImageOptions, options).format
        images = render_pages(inputs[0], image_format=fmt, dpi=self._dpi)

        result = OperationResult()
        for page_number, image in enumerate(images, start=1):
            result.add(image, output_name(f"page-{page_number}", fmt))
        return result


class ImageToPdfOperation(Operation):
    """Place each input image on its own page, sized to the image."""

    def spec(self) -> OperationSpec:
        return OperationSpec(
            operation_type=OperationType.IMAGE_TO_PDF,
            name="Image to PDF",
            min_inputs=1,
            max_inputs=None,
            description="Combine images into a PDF, one page per image.",
        )

    def run(
        self,
        inputs: Sequence[bytes],
        options: Dict[str, Any],
        progress_cb: Optional[ProgressCallback] = None,
    ) -> OperationResult:
        result = OperationResult()
        result.add(images_to_pdf(inputs), output_name("converted", "pdf"))
        return result
