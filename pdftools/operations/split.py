from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, model_validator

from pdftools.jobs.models import OperationType
from pdftools.operations.base import (
    Operation,
    OperationResult,
    OperationSpec,
    ProgressCallback,
    output_name,
    parse_options,
)
from pdftools.processing.pdf import extract_pages


class PageRange(BaseModel):
    """1-based, inclusive page range."""
    start: int
    end: int

    @model_validator(mode="after")
    def check_bounds(self) -> "PageRange":
        if self.start < 1:
            raise ValueError(f"range start must be >= 1, got {self.start}")
        if self.start > self.end:
            raise ValueError(f"range start {self.start} is after end {self.end}")
        return self


class SplitOptions(BaseModel):
    # Missing ranges means "first page only"
    ranges: Optional[List[PageRange]] = Field(default=None, min_length=1)

    def effective_ranges(self) -> List[PageRange]:
        if self.ranges is None:
            return [PageRange(start=1, end=1)]
        return self.ranges


class SplitOperation(Operation):
    """Cut one PDF into one output per requested page range."""

    def spec(self) -> OperationSpec:
        return OperationSpec(
            operation_type=OperationType.SPLIT,
            name="Split PDF",
            description="Extract page ranges into separate PDFs.",
        )

    def run(
        self,
        inputs: Sequence[bytes],
        options: Dict[str, Any],
        progress_cb: Optional[ProgressCallback] = None,
    ) -> OperationResult:
        ranges = parse_options(SplitOptions, options).effective_ranges()
        parts = extract_pages(inputs[0], [(r.start, r.end) for r in ranges])

        result = OperationResult()
        for i, part in enumerate(parts, start=1):
            result.add(part, output_name(f"split-{i}", "pdf"))
        return result
