"""Google Cloud Vision adapter.

The client library is imported on first use so the service starts without
it when vision_provider is "disabled".
"""

from typing import Optional

from pdftools.errors import VisionError
from pdftools.logger import logger
from pdftools.processing.pdf import render_pages


class GoogleVision:
    def __init__(
        self,
        project: Optional[str] = None,
        key_path: Optional[str] = None,
        render_dpi: int = 200,
    ):
        self._project = project
        self._key_path = key_path
        self._render_dpi = render_dpi
        self._client = None

    def _get_client(self):
        if self._client is None:
            from google.cloud import vision

            client_options = {"quota_project_id": self._project} if self._project else None
            if self._key_path:
                self._client = vision.ImageAnnotatorClient.from_service_account_file(
                    self._key_path, client_options=client_options
                )
            else:
                self._client = vision.ImageAnnotatorClient(client_options=client_options)
        return self._client

    def extract_text(self, image: bytes) -> str:
        from google.cloud import vision

        try:
            response = self._get_client().text_detection(image=vision.Image(content=image))
        except Exception as exc:
            logger.error(f"Vision text detection failed: {exc}")
            raise VisionError("Failed to extract text from image") from exc
        if response.error.message:
            raise VisionError(f"Failed to extract text from image: {response.error.message}")
        annotations = response.text_annotations
        return annotations[0].description if annotations else ""

    def extract_document_text(self, pdf: bytes) -> str:
        """Run dense-text detection page by page and join the results."""
        from google.cloud import vision

        try:
            pages = render_pages(pdf, image_format="png", dpi=self._render_dpi)
        except ValueError as exc:
            raise VisionError(str(exc)) from exc

        texts = []
        for number, page in enumerate(pages, start=1):
            try:
                response = self._get_client().document_text_detection(
                    image=vision.Image(content=page)
                )
            except Exception as exc:
                logger.error(f"Vision document detection failed on page {number}: {exc}")
                raise VisionError("Failed to extract text from PDF") from exc
            if response.error.message:
                raise VisionError(
                    f"Failed to extract text from PDF page {number}: {response.error.message}"
                )
            texts.append(response.full_text_annotation.text or "")
        return "\n".join(texts)
