from typing import Protocol

from pdftools.errors import VisionError


class VisionService(Protocol):
    def extract_text(self, image: bytes) -> str:
        """Return the text found in a single image. Raises VisionError."""

    def extract_document_text(self, pdf: bytes) -> str:
        """Return the full text of a PDF document. Raises VisionError."""


class DisabledVision:
    """Stand-in used when no provider is configured; every call fails."""

    def extract_text(self, image: bytes) -> str:
        raise VisionError("Text extraction is not configured")

    def extract_document_text(self, pdf: bytes) -> str:
        raise VisionError("Text extraction is not configured")
