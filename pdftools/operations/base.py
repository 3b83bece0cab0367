"""Base operation interface and data types for the operation registry."""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from pdftools.errors import OperationError
from pdftools.jobs.models import OperationType

MIME_TYPES = {
    "pdf": "application/pdf",
    "txt": "text/plain",
    "png": "image/png",
    "jpg": "image/jpeg",
}


@dataclass
class OperationSpec:
    """Metadata describing a registered operation."""
    operation_type: OperationType
    name: str
    min_inputs: int = 1
    max_inputs: Optional[int] = 1
    description: str = ""
    reports_progress: bool = False


@dataclass
class OperationResult:
    """Ordered output buffers with a file name for each."""
    outputs: List[bytes] = field(default_factory=list)
    names: List[str] = field(default_factory=list)

    def add(self, data: bytes, name: str) -> None:
        self.outputs.append(data)
        self.names.append(name)

    def mime_type(self, index: int) -> str:
        ext = self.names[index].rsplit(".", 1)[-1].lower()
        return MIME_TYPES.get(ext, "application/octet-stream")


# Type alias for progress callbacks: fn(completed_items, total_items, message)
ProgressCallback = Callable[[int, int, str], None]

OptionsT = TypeVar("OptionsT", bound=BaseModel)


def parse_options(model: Type[OptionsT], options: Optional[Dict[str, Any]]) -> OptionsT:
    """Validate a job's opaque options map against an operation's options model."""
    try:
        return model.model_validate(options or {})
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'options'}: {err['msg']}"
            for err in exc.errors()
        )
        raise OperationError(f"Invalid options: {details}") from exc


def output_name(prefix: str, extension: str) -> str:
    return f"{prefix}-{uuid.uuid4()}.{extension}"


class Operation(ABC):
    """Abstract base class for all document operations.

    To add an operation:
    1. Subclass Operation in a module under pdftools/operations/
    2. Implement spec() and run()
    3. Add it to build_registry() in pdftools/operations/registry.py
    """

    @abstractmethod
    def spec(self) -> OperationSpec:
        """Return operation metadata."""
        ...

    @abstractmethod
    def run(
        self,
        inputs: Sequence[bytes],
        options: Dict[str, Any],
        progress_cb: Optional[ProgressCallback] = None,
    ) -> OperationResult:
        ...

    def execute(
        self,
        inputs: Sequence[bytes],
        options: Optional[Dict[str, Any]] = None,
        progress_cb: Optional[ProgressCallback] = None,
    ) -> OperationResult:
        """Check input cardinality, run the operation, and normalize failures.

        Anything the operation raises comes out as an OperationError.
        """
        spec = self.spec()
        count = len(inputs)
        if count < spec.min_inputs or (spec.max_inputs is not None and count > spec.max_inputs):
            expected = (
                f"at least {spec.min_inputs}" if spec.max_inputs is None
                else f"exactly {spec.min_inputs}" if spec.min_inputs == spec.max_inputs
                else f"{spec.min_inputs}-{spec.max_inputs}"
            )
            raise OperationError(
                f"{spec.operation_type.value} expects {expected} input file(s), got {count}"
            )

        try:
            result = self.run(inputs, options or {}, progress_cb)
        except OperationError:
            raise
        except ValueError as exc:
            raise OperationError(str(exc)) from exc

        if not result.outputs:
            raise OperationError(f"{spec.operation_type.value} produced no output")
        return result
