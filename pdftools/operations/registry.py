"""Operation registry: a fixed table from operation type to handler."""

from types import MappingProxyType
from typing import Iterable, List, Mapping

from pdftools.errors import UnsupportedOperation
from pdftools.jobs.models import OperationType
from pdftools.logger import logger
from pdftools.operations.base import Operation, OperationSpec
from pdftools.operations.compress import CompressOperation
from pdftools.operations.convert import ImageToPdfOperation, PdfToImageOperation
from pdftools.operations.merge import MergeOperation
from pdftools.operations.ocr import ImageOcrOperation, OcrOperation
from pdftools.operations.split import SplitOperation
from pdftools.vision.base import VisionService


class OperationRegistry:
    """Read-only mapping built once at startup and handed to the runner."""

    def __init__(self, operations: Iterable[Operation]):
        table = {}
        for operation in operations:
            op_type = operation.spec().operation_type
            if op_type in table:
                raise ValueError(f"Operation '{op_type.value}' registered twice")
            table[op_type] = operation
        self._operations: Mapping[OperationType, Operation] = MappingProxyType(table)

    def get(self, operation_type) -> Operation:
        """Return the handler for a type. Raises UnsupportedOperation."""
        try:
            key = OperationType(operation_type)
        except ValueError:
            raise UnsupportedOperation(str(operation_type))
        operation = self._operations.get(key)
        if operation is None:
            raise UnsupportedOperation(key.value)
        return operation

    def __contains__(self, operation_type) -> bool:
        try:
            return OperationType(operation_type) in self._operations
        except ValueError:
            return False

    def list_operations(self) -> List[OperationSpec]:
        return [op.spec() for op in self._operations.values()]


def build_registry(
    vision: VisionService,
    render_dpi: int = 150,
    default_quality: float = 0.8,
) -> OperationRegistry:
    """Construct the built-in operation table."""
    registry = OperationRegistry([
        MergeOperation(),
        SplitOperation(),
        CompressOperation(default_quality=default_quality),
        PdfToImageOperation(dpi=render_dpi),
        ImageToPdfOperation(),
        OcrOperation(vision),
        ImageOcrOperation(vision),
    ])
    for spec in registry.list_operations():
        logger.info(f"Registered operation: {spec.operation_type.value} ({spec.name})")
    return registry
