"""Certificate document processing: text extraction and structured field extraction.

Usage:
    from trainai.core.document_processing import (
        TextExtractionAdapter,
        FieldExtractor,
        normalize_date,
    )
"""

from trainai.core.document_processing.base import (
    DocumentType,
    ExtractionError,
    TextExtraction,
    detect_document_type,
    validate_size,
)
from trainai.core.document_processing.dates import normalize_date
from trainai.core.document_processing.field_extractor import FieldExtractor, regex_fallback
from trainai.core.document_processing.text_extraction import TextExtractionAdapter

__all__ = [
    "DocumentType",
    "ExtractionError",
    "TextExtraction",
    "detect_document_type",
    "validate_size",
    "normalize_date",
    "FieldExtractor",
    "regex_fallback",
    "TextExtractionAdapter",
]
