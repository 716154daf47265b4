"""Structured field extraction from certificate text.

The model is asked for a fixed JSON shape. Its reply is cleaned up (fences
stripped, truncated brackets closed); when it still cannot be read, or the
model call itself fails, a small set of labeled-pattern regexes takes over
at a fixed lower confidence.
"""

import re
from typing import Any

from trainai.core.document_processing.dates import normalize_date
from trainai.core.llm import LLMClient, parse_llm_json_dict
from trainai.core.logging import get_logger
from trainai.core.results import LLMResponseError, TransientProviderError
from trainai.core.schemas_documents import CERTIFICATE_FIELDS, DATE_FIELDS, ExtractionResult

logger = get_logger(__name__)

DEFAULT_AI_CONFIDENCE = 50.0
FALLBACK_CONFIDENCE = 60.0
FALLBACK_NOTE = "AI extraction failed, used fallback extraction"
NO_TEXT_NOTE = "No text could be extracted from the document"

EXTRACTION_PROMPT = """Analyze the following certificate text and extract structured information.
Return a JSON object with the following fields:
- certificateNumber: The certificate or license number
- issueDate: Issue date in YYYY-MM-DD format
- expiryDate: Expiry date in YYYY-MM-DD format
- issuer: The issuing authority or organization
- employeeName: The name of the certificate holder
- certificateType: The type or name of the certificate/training

Date rule: numeric dates on these certificates are written day-first. Read an
ambiguous date such as 03-04-2025 or 03/04/2025 as DD-MM-YYYY (3 April 2025)
and always output it as YYYY-MM-DD (2025-04-03).

Also provide a confidence score (0-1) for the extraction quality.

Certificate text:
{text}

Return only valid JSON in this format:
{{
  "certificateNumber": "string or null",
  "issueDate": "YYYY-MM-DD or null",
  "expiryDate": "YYYY-MM-DD or null",
  "issuer": "string or null",
  "employeeName": "string or null",
  "certificateType": "string or null",
  "confidence": 0.85
}}"""

_CERT_NUMBER = re.compile(
    r"(?:certificate|certificaat|cert|license|licence)\s*(?:number|nummer|nr\.?|no\.?|#)\s*:?\s*([A-Z0-9][A-Z0-9-]*)",
    re.IGNORECASE,
)
_DATE_TOKEN = re.compile(r"\b(\d{4}-\d{2}-\d{2}|\d{1,2}[-/.]\d{1,2}[-/.]\d{4})\b")
_HOLDER_NAME = re.compile(
    r"\b(?:employee\s+name|holder\s+name|name|employee|holder)\s*:\s*([A-Za-z][A-Za-z .,'\-]*)",
    re.IGNORECASE,
)
_ISSUER = re.compile(
    r"\b(?:issued\s+by|issuer|authority)\s*:?\s*([A-Za-z][A-Za-z0-9 &.'\-]*)",
    re.IGNORECASE,
)


def build_extraction_prompt(text: str) -> str:
    return EXTRACTION_PROMPT.format(text=text)


def scale_confidence(raw: Any) -> float:
    """Model confidence on a 0-1 or 0-100 scale, reported on 0-100."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_AI_CONFIDENCE
    if value <= 1:
        value *= 100
    return max(0.0, min(100.0, value))


def clean_fields(data: dict[str, Any]) -> dict[str, str]:
    """Keep known non-empty fields as strings, with dates normalized."""
    fields: dict[str, str] = {}
    for key in CERTIFICATE_FIELDS:
        value = data.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if not text or text.lower() in ("null", "none", "n/a"):
            continue
        fields[key] = normalize_date(text) if key in DATE_FIELDS else text
    return fields


def regex_fallback(text: str) -> ExtractionResult:
    """Labeled-pattern extraction used when the model output is unusable."""
    data: dict[str, str] = {}

    match = _CERT_NUMBER.search(text)
    if match:
        data["certificateNumber"] = match.group(1)

    # Positional heuristic: first date is the issue date, second the expiry
    dates = _DATE_TOKEN.findall(text)
    if dates:
        data["issueDate"] = dates[0]
    if len(dates) >= 2:
        data["expiryDate"] = dates[1]

    match = _HOLDER_NAME.search(text)
    if match and match.group(1).strip():
        data["employeeName"] = match.group(1).strip()

    match = _ISSUER.search(text)
    if match and match.group(1).strip():
        data["issuer"] = match.group(1).strip()

    return ExtractionResult(
        extracted_fields=clean_fields(data),
        confidence=FALLBACK_CONFIDENCE,
        errors=[FALLBACK_NOTE],
        method="regex_fallback",
    )


class FieldExtractor:
    """Turns certificate text into an ``ExtractionResult``."""

    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def request(self, text: str) -> str | None:
        """Raw model reply for ``text``, or None when there is no text or the call failed."""
        if not text.strip():
            return None
        try:
            return await self.llm.complete_text(build_extraction_prompt(text))
        except (TransientProviderError, LLMResponseError) as e:
            logger.warning(f"AI field extraction call failed, using regex fallback: {e}")
            return None

    def parse(self, raw: str | None, text: str) -> ExtractionResult:
        """Read a model reply, falling back to regexes over ``text`` when it is unusable."""
        if not text.strip():
            return ExtractionResult(confidence=0.0, errors=[NO_TEXT_NOTE], method="none")
        if raw is None:
            return regex_fallback(text)

        try:
            parsed = parse_llm_json_dict(raw)
        except ValueError as e:
            logger.warning(f"Could not parse extraction response, using regex fallback: {e}")
            return regex_fallback(text)

        fields = clean_fields(parsed)
        confidence = scale_confidence(parsed.get("confidence", DEFAULT_AI_CONFIDENCE))
        logger.info(f"AI extracted {len(fields)} fields (confidence {confidence:.0f})")
        return ExtractionResult(extracted_fields=fields, confidence=confidence, method="ai")
