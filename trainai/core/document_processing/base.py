"""Document types, size limits and errors for certificate extraction."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal


class DocumentType(Enum):
    """Supported certificate document types."""
    PDF = "pdf"
    IMAGE = "image"


PDF_MIME_TYPE = "application/pdf"

# File extension to DocumentType mapping, used when no MIME type was stored
EXTENSION_MAP: dict[str, DocumentType] = {
    ".pdf": DocumentType.PDF,
    ".png": DocumentType.IMAGE,
    ".jpg": DocumentType.IMAGE,
    ".jpeg": DocumentType.IMAGE,
    ".webp": DocumentType.IMAGE,
    ".gif": DocumentType.IMAGE,
}

# Size limits in bytes
SIZE_LIMITS: dict[DocumentType, int] = {
    DocumentType.PDF: 10 * 1024 * 1024,    # 10 MB
    DocumentType.IMAGE: 5 * 1024 * 1024,   # 5 MB
}


class ExtractionError(Exception):
    """Raised when a document cannot be turned into text."""

    def __init__(self, message: str, extractor: str | None = None):
        super().__init__(message)
        self.extractor = extractor


@dataclass
class TextExtraction:
    """Raw text read from a document, and how it was read."""

    text: str
    method: Literal["text_layer", "vision_ocr"]
    page_count: int = 1
    pages_ocred: int = 0
    warnings: list[str] = field(default_factory=list)


def detect_document_type(mime_type: str | None, file_name: str = "") -> DocumentType:
    """Detect document type from MIME type, falling back to the file extension.

    Args:
        mime_type: Stored MIME type (``application/pdf`` or ``image/*``)
        file_name: Original filename, consulted only when no MIME type is known

    Returns:
        The document type

    Raises:
        ExtractionError: If the type is not a PDF or an image
    """
    if mime_type:
        normalized = mime_type.split(";")[0].strip().lower()
        if normalized == PDF_MIME_TYPE:
            return DocumentType.PDF
        if normalized.startswith("image/"):
            return DocumentType.IMAGE
        raise ExtractionError(f"Unsupported file type: {mime_type}")

    if "." in file_name:
        extension = "." + file_name.rsplit(".", 1)[-1].lower()
        if extension in EXTENSION_MAP:
            return EXTENSION_MAP[extension]

    raise ExtractionError(f"Unsupported file type: {file_name or 'unknown'}")


def validate_size(document_type: DocumentType, file_bytes: bytes) -> None:
    """Raise ``ExtractionError`` if the file is empty or over its type's size limit."""
    if not file_bytes:
        raise ExtractionError("Document is empty", extractor=document_type.value)

    limit = SIZE_LIMITS[document_type]
    size = len(file_bytes)
    if size > limit:
        limit_mb = limit / (1024 * 1024)
        size_mb = size / (1024 * 1024)
        raise ExtractionError(
            f"File size ({size_mb:.1f} MB) exceeds limit ({limit_mb:.1f} MB)",
            extractor=document_type.value,
        )
