"""Pydantic schemas for certificate document extraction."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ProcessingStatus = Literal["pending", "processing", "completed", "failed"]

# Field names the extractor may produce, in prompt order
CERTIFICATE_FIELDS = (
    "certificateNumber",
    "issueDate",
    "expiryDate",
    "issuer",
    "employeeName",
    "certificateType",
)

DATE_FIELDS = ("issueDate", "expiryDate")


class ExtractionRequest(BaseModel):
    """A stored document to run through the pipeline."""

    document_id: str
    mime_type: str | None = None
    blob_ref: str | None = Field(default=None, description="Storage path of the uploaded file")
    file_name: str = ""


class ExtractionResult(BaseModel):
    """Structured fields read from a certificate.

    ``extracted_fields`` omits fields that could not be read rather than
    storing nulls. ``confidence`` is on a 0-100 scale.
    """

    extracted_fields: dict[str, str] = Field(default_factory=dict)
    confidence: float = Field(default=0.0, ge=0, le=100)
    errors: list[str] = Field(default_factory=list)
    method: Literal["ai", "regex_fallback", "none"] = "none"


class SuggestedMatch(BaseModel):
    """An existing record the extracted value most likely refers to."""

    id: str
    name: str
    confidence: float = Field(..., ge=0, le=1)


class DocumentProcessingResult(BaseModel):
    """Outcome of a pipeline run, returned to the caller."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    confidence: float = 0.0
    extracted_data: dict[str, str] = Field(default_factory=dict, alias="extractedData")
    suggested_employee: SuggestedMatch | None = Field(default=None, alias="suggestedEmployee")
    suggested_license: SuggestedMatch | None = Field(default=None, alias="suggestedLicense")
    errors: list[str] | None = None
