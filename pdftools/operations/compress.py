from typing import Any, Dict, Optional, Sequence

from pydantic import BaseModel, Field

from pdftools.jobs.models import OperationType
from pdftools.operations.base import (
    Operation,
    OperationResult,
    OperationSpec,
    ProgressCallback,
    output_name,
    parse_options,
)
from pdftools.processing.pdf import compress_pdf


class CompressOptions(BaseModel):
    quality: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class CompressOperation(Operation):
    """Lossy re-encode of a PDF's images; page count is unchanged."""

    def __init__(self, default_quality: float = 0.8):
        self._default_quality = default_quality

    def spec(self) -> OperationSpec:
        return OperationSpec(
            operation_type=OperationType.COMPRESS,
            name="Compress PDF",
            description="Reduce file size by re-encoding embedded images.",
        )

    def run(
        self,
        inputs: Sequence[bytes],
        options: Dict[str, Any],
        progress_cb: Optional[ProgressCallback] = None,
    ) -> OperationResult:
        opts = parse_options(CompressOptions, options)
        quality = self._default_quality if opts.quality is None else opts.quality

        result = OperationResult()
        result.add(compress_pdf(inputs[0], quality), output_name("compressed", "pdf"))
        return result
