from typing import Any, Dict, Optional, Sequence

from pdftools.jobs.models import OperationType
from pdftools.operations.base import (
    Operation,
    OperationResult,
    OperationSpec,
    ProgressCallback,
    output_name,
)
from pdftools.processing.pdf import merge_pdfs


class MergeOperation(Operation):
    """Concatenate the pages of every input PDF into one document."""

    def spec(self) -> OperationSpec:
        return OperationSpec(
            operation_type=OperationType.MERGE,
            name="Merge PDFs",
            min_inputs=1,
            max_inputs=None,
            description="Combine several PDFs into one, keeping input order.",
        )

    def run(
        self,
        inputs: Sequence[bytes],
        options: Dict[str, Any],
        progress_cb: Optional[ProgressCallback] = None,
    ) -> OperationResult:
        result = OperationResult()
        result.add(merge_pdfs(inputs), output_name("merged", "pdf"))
        return result
