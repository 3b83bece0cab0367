"""Error taxonomy shared by the job core and the HTTP layer."""


class PdfToolsError(Exception):
    """Base class for every error raised by this service."""


class ValidationError(PdfToolsError):
    """Submission rejected before a job record exists."""


class OperationError(PdfToolsError):
    """A handler could not produce its outputs. Fatal to the job."""


class UnsupportedOperation(OperationError):
    def __init__(self, operation_type: str):
        super().__init__(f"Unsupported job type: {operation_type}")
        self.operation_type = operation_type


class PartialItemError(PdfToolsError):
    """One item of a multi-item handler failed; recovered inside the handler."""

    def __init__(self, index: int, message: str):
        super().__init__(f"Item {index} failed: {message}")
        self.index = index


class TransportError(PdfToolsError):
    """Blob store read or write failed."""


class VisionError(PdfToolsError):
    """The text-extraction service failed or is not configured."""


class JobNotFound(PdfToolsError):
    def __init__(self, job_id: int):
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class FileNotFound(PdfToolsError):
    def __init__(self, file_id):
        super().__init__(f"File {file_id} not found")
        self.file_id = file_id


class InvalidJobTransition(PdfToolsError):
    """An update would break a job record invariant."""


class DispatcherUnavailable(PdfToolsError):
    """Jobs cannot be started right now (dispatcher stopped or not started)."""
