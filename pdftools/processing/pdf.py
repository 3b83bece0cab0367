"""PDF page manipulation and rendering on top of PyMuPDF and Pillow."""

import io
from typing import List, Sequence, Tuple

import fitz
from PIL import Image

from pdftools.logger import logger

# Pillow save format names keyed by the formats the API accepts
IMAGE_FORMATS = {"png": "PNG", "jpg": "JPEG"}


def open_pdf(data: bytes) -> fitz.Document:
    """Open a PDF from memory. Raises ValueError for anything that isn't one."""
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as exc:
        raise ValueError(f"Invalid PDF document: {exc}") from exc
    if doc.page_count == 0:
        doc.close()
        raise ValueError("Invalid PDF document: no pages")
    return doc


def page_count(data: bytes) -> int:
    with open_pdf(data) as doc:
        return doc.page_count


def merge_pdfs(buffers: Sequence[bytes]) -> bytes:
    """Concatenate all pages of every input, in input order."""
    merged = fitz.open()
    try:
        for buf in buffers:
            with open_pdf(buf) as src:
                merged.insert_pdf(src)
        return merged.tobytes(garbage=3, deflate=True)
    finally:
        merged.close()


def extract_pages(data: bytes, ranges: Sequence[Tuple[int, int]]) -> List[bytes]:
    """Copy each 1-based inclusive (start, end) range into its own PDF."""
    with open_pdf(data) as src:
        total = src.page_count
        for start, end in ranges:
            if end > total:
                raise ValueError(
                    f"Page range {start}-{end} exceeds document length ({total} pages)"
                )

        results = []
        for start, end in ranges:
            part = fitz.open()
            try:
                part.insert_pdf(src, from_page=start - 1, to_page=end - 1)
                results.append(part.tobytes(garbage=3, deflate=True))
            finally:
                part.close()
        return results


def compress_pdf(data: bytes, quality: float) -> bytes:
    """Re-encode embedded raster images as JPEG and rewrite the file compactly.

    quality is in [0, 1]; page count is preserved.
    """
    jpeg_quality = max(1, int(round(quality * 100)))
    with open_pdf(data) as doc:
        seen = set()
        for page in doc:
            for img in page.get_images(full=True):
                xref = img[0]
                if xref in seen:
                    continue
                seen.add(xref)
                reencoded = _reencode_image(doc, xref, jpeg_quality)
                if reencoded is not None:
                    page.replace_image(xref, stream=reencoded)
        return doc.tobytes(garbage=4, deflate=True, clean=True)


def _reencode_image(doc: fitz.Document, xref: int, jpeg_quality: int):
    extracted = doc.extract_image(xref)
    if not extracted or extracted.get("smask"):
        # Images with soft masks lose transparency as JPEG; leave them alone
        return None
    try:
        with Image.open(io.BytesIO(extracted["image"])) as img:
            out = io.BytesIO()
            img.convert("RGB").save(out, format="JPEG", quality=jpeg_quality, optimize=True)
    except (OSError, ValueError) as exc:
        logger.debug(f"Skipping image xref={xref}: {exc}")
        return None
    if len(out.getvalue()) >= len(extracted["image"]):
        return None
    return out.getvalue()


def render_pages(data: bytes, image_format: str = "png", dpi: int = 150) -> List[bytes]:
    """Render every page to an image, one buffer per page in page order."""
    pil_format = IMAGE_FORMATS[image_format]
    images = []
    with open_pdf(data) as doc:
        for page in doc:
            pix = page.get_pixmap(dpi=dpi, alpha=False)
            img = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
            out = io.BytesIO()
            img.save(out, format=pil_format)
            images.append(out.getvalue())
    return images


def images_to_pdf(buffers: Sequence[bytes]) -> bytes:
    """Build a PDF with one page per image, page size equal to image pixel size."""
    pdf = fitz.open()
    try:
        for index, buf in enumerate(buffers, start=1):
            try:
                with Image.open(io.BytesIO(buf)) as img:
                    width, height = img.size
                    png = io.BytesIO()
                    img.convert("RGBA" if img.mode in ("RGBA", "LA", "P") else "RGB").save(
                        png, format="PNG"
                    )
            except (OSError, ValueError) as exc:
                raise ValueError(f"Image {index} could not be decoded: {exc}") from exc

            page = pdf.new_page(width=width, height=height)
            page.insert_image(page.rect, stream=png.getvalue())
        return pdf.tobytes(garbage=3, deflate=True)
    finally:
        pdf.close()
