"""Raw text extraction for certificate PDFs and images.

Uses PyMuPDF (fitz) for the PDF text layer. PDFs whose text layer is
(nearly) empty are treated as scans: the first pages are rendered to PNG and
read with the vision model. Images go to the vision model directly.
"""

import base64

import fitz

from trainai.core.config import Settings
from trainai.core.document_processing.base import (
    DocumentType,
    ExtractionError,
    TextExtraction,
)
from trainai.core.llm import LLMClient
from trainai.core.logging import get_logger
from trainai.core.results import LLMResponseError, TransientProviderError

logger = get_logger(__name__)

OCR_PROMPT = (
    "Extract all text from this certificate image. Focus on certificate numbers, "
    "dates, names, and issuing authorities. Return the text exactly as printed, "
    "one line per printed line, without commentary."
)


def _open_pdf(file_bytes: bytes) -> "fitz.Document":
    try:
        return fitz.open(stream=file_bytes, filetype="pdf")
    except Exception as e:
        raise ExtractionError(f"Failed to open PDF: {e}", extractor="pdf") from e


class TextExtractionAdapter:
    """Turns a document blob into raw text, choosing text layer or vision OCR."""

    def __init__(self, llm: LLMClient, settings: Settings):
        self.llm = llm
        self.min_text_chars = settings.MIN_TEXT_LAYER_CHARS
        self.max_ocr_pages = settings.OCR_MAX_PAGES
        self.render_dpi = settings.OCR_RENDER_DPI

    def is_sufficient(self, text: str) -> bool:
        """Whether a text layer holds enough characters to skip OCR."""
        return len(text.strip()) >= self.min_text_chars

    def read_text_layer(self, file_bytes: bytes) -> tuple[str, int]:
        """Text layer of every page, and the page count."""
        doc = _open_pdf(file_bytes)
        try:
            text = "\n".join(page.get_text("text") for page in doc)
            page_count = len(doc)
        finally:
            doc.close()
        logger.debug(f"PDF text layer: {len(text.strip())} chars over {page_count} pages")
        return text.strip(), page_count

    async def ocr(self, document_type: DocumentType, file_bytes: bytes, mime_type: str | None) -> TextExtraction:
        """
        Read a scanned PDF or an image with the vision model.

        Args:
            document_type: Detected type of the document
            file_bytes: Raw document content
            mime_type: Stored MIME type, sent along with image uploads

        Returns:
            TextExtraction with method ``vision_ocr``

        Raises:
            ExtractionError: Unreadable PDF, or no page could be read
        """
        if document_type == DocumentType.IMAGE:
            return await self.ocr_image(file_bytes, mime_type or "image/jpeg")
        return await self.ocr_pdf(file_bytes)

    async def ocr_image(self, file_bytes: bytes, mime_type: str) -> TextExtraction:
        image_b64 = base64.b64encode(file_bytes).decode("ascii")
        try:
            text = await self.llm.complete_vision(OCR_PROMPT, image_b64, mime_type)
        except (TransientProviderError, LLMResponseError) as e:
            raise ExtractionError(f"Vision OCR failed: {e}", extractor="image") from e

        logger.info(f"Image OCR returned {len(text)} chars")
        return TextExtraction(text=text.strip(), method="vision_ocr", page_count=1, pages_ocred=1)

    def render_page_png(self, page: "fitz.Page") -> bytes:
        """Render one PDF page to PNG bytes."""
        pixmap = page.get_pixmap(dpi=self.render_dpi)
        return pixmap.tobytes("png")

    async def ocr_pdf(self, file_bytes: bytes) -> TextExtraction:
        """Render the first pages (up to ``OCR_MAX_PAGES``) and read them with the vision model."""
        doc = _open_pdf(file_bytes)
        try:
            page_count = len(doc)
            pages_to_read = min(page_count, self.max_ocr_pages)
            rendered = [self.render_page_png(doc[page_num]) for page_num in range(pages_to_read)]
        finally:
            doc.close()

        warnings: list[str] = []
        if page_count > pages_to_read:
            warnings.append(f"OCR limited to the first {pages_to_read} of {page_count} pages")

        page_texts: list[str] = []
        for page_num, png in enumerate(rendered, start=1):
            image_b64 = base64.b64encode(png).decode("ascii")
            try:
                page_text = await self.llm.complete_vision(OCR_PROMPT, image_b64, "image/png")
            except (TransientProviderError, LLMResponseError) as e:
                logger.warning(f"Vision OCR failed for page {page_num}: {e}")
                warnings.append(f"Page {page_num}: OCR failed ({e})")
                continue
            if page_text.strip():
                page_texts.append(page_text.strip())

        if not page_texts:
            raise ExtractionError(
                "No text could be read from the scanned PDF; " + "; ".join(warnings or ["empty OCR output"]),
                extractor="pdf",
            )

        logger.info(f"Vision OCR read {len(page_texts)}/{pages_to_read} pages")
        return TextExtraction(
            text="\n\n".join(page_texts),
            method="vision_ocr",
            page_count=page_count,
            pages_ocred=pages_to_read,
            warnings=warnings,
        )
