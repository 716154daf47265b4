"""Certificate Extraction Graph.

LangGraph workflow for processing an uploaded certificate:
1. Load the document record and mark it processing
2. Download the file from storage
3. Read the PDF text layer (or detect an image)
4. Render pages and OCR them with the vision model when the text is too thin
5. Ask the model for structured fields
6. Parse the reply (regex fallback when unusable)
7. Suggest the employee and certificate type the fields refer to
8. Persist the outcome on the document record
"""

import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID, uuid4

from langgraph.graph import END, StateGraph

from trainai.core.document_processing import (
    DocumentType,
    ExtractionError,
    FieldExtractor,
    TextExtractionAdapter,
    detect_document_type,
    validate_size,
)
from trainai.core.entity_resolver import EntityResolver, MatchCandidate
from trainai.core.logging import get_logger, log_with_context
from trainai.core.schemas_documents import (
    DocumentProcessingResult,
    ExtractionRequest,
    ExtractionResult,
    SuggestedMatch,
)

logger = get_logger(__name__)


@dataclass
class CertificateExtractionState:
    """State for the certificate extraction graph."""

    # Input
    document_id: str
    run_id: UUID

    # Document info (loaded from DB)
    loaded: bool = False
    file_name: str = ""
    file_path: str = ""
    mime_type: str | None = None
    document_type: str = ""

    # Downloaded file
    file_bytes: bytes = b""

    # Text
    text: str = ""
    page_count: int = 0
    needs_ocr: bool = False
    text_method: str = ""

    # Extraction
    raw_response: str | None = None
    extraction: ExtractionResult | None = None

    # Suggestions
    suggested_employee: SuggestedMatch | None = None
    suggested_license: SuggestedMatch | None = None

    warnings: list[str] = field(default_factory=list)

    # Error tracking
    error: str | None = None


def _suggestion(candidate: MatchCandidate | None) -> SuggestedMatch | None:
    if candidate is None:
        return None
    return SuggestedMatch(id=candidate.entity_id, name=candidate.entity_name, confidence=candidate.similarity)


def should_continue(state: CertificateExtractionState) -> str:
    """Determine if processing should continue."""
    if state.error:
        return "finalize"
    return "continue"


def route_after_text(state: CertificateExtractionState) -> str:
    """Send thin or image-only documents through OCR first."""
    if state.error:
        return "finalize"
    if state.needs_ocr:
        return "ocr"
    return "extract"


class CertificateExtractionPipeline:
    """Runs one certificate document through the extraction graph."""

    def __init__(
        self,
        documents,
        store,
        adapter: TextExtractionAdapter,
        field_extractor: FieldExtractor,
        resolver: EntityResolver,
    ):
        self.documents = documents
        self.store = store
        self.adapter = adapter
        self.field_extractor = field_extractor
        self.resolver = resolver
        self.graph = self.build_graph()

    # Nodes

    async def load_document(self, state: CertificateExtractionState) -> dict[str, Any]:
        """Load document info from database and check its type before any download."""
        logger.info(f"Loading certificate document {state.document_id}")

        doc = await self.documents.get(state.document_id)
        if not doc:
            return {"error": f"Document {state.document_id} not found"}

        request = ExtractionRequest(
            document_id=state.document_id,
            mime_type=doc.get("mime_type"),
            blob_ref=doc.get("file_path"),
            file_name=doc.get("file_name") or "",
        )
        loaded = {"loaded": True, "file_name": request.file_name, "mime_type": request.mime_type}

        try:
            document_type = detect_document_type(request.mime_type, request.file_name)
        except ExtractionError as e:
            return {**loaded, "error": str(e)}
        if not request.blob_ref:
            return {**loaded, "error": f"Document {state.document_id} has no stored file"}

        await self.documents.set_status(state.document_id, "processing")
        return {**loaded, "file_path": request.blob_ref, "document_type": document_type.value}

    async def download_file(self, state: CertificateExtractionState) -> dict[str, Any]:
        """Download file from Supabase Storage."""
        logger.info(f"Downloading file from {state.file_path}")

        try:
            return {"file_bytes": await self.documents.download(state.file_path)}
        except Exception as e:
            logger.error(f"Download failed: {e}")
            return {"error": f"Download failed: {e}"}

    async def extract_text(self, state: CertificateExtractionState) -> dict[str, Any]:
        """Check the size, then read the PDF text layer."""
        document_type = DocumentType(state.document_type)
        try:
            validate_size(document_type, state.file_bytes)
        except ExtractionError as e:
            return {"error": str(e)}

        if document_type == DocumentType.IMAGE:
            return {"needs_ocr": True, "page_count": 1}

        try:
            text, page_count = self.adapter.read_text_layer(state.file_bytes)
        except ExtractionError as e:
            return {"error": str(e)}

        sufficient = self.adapter.is_sufficient(text)
        if not sufficient:
            logger.info(f"{state.file_name}: text layer has {len(text)} chars, switching to vision OCR")

        return {
            "text": text,
            "page_count": page_count,
            "needs_ocr": not sufficient,
            "text_method": "text_layer" if sufficient else "",
        }

    async def ocr_render(self, state: CertificateExtractionState) -> dict[str, Any]:
        """Render and OCR the document with the vision model."""
        try:
            result = await self.adapter.ocr(DocumentType(state.document_type), state.file_bytes, state.mime_type)
        except ExtractionError as e:
            logger.error(f"OCR failed for {state.file_name}: {e}")
            return {"error": str(e)}

        return {
            "text": result.text,
            "page_count": result.page_count,
            "text_method": result.method,
            "warnings": state.warnings + result.warnings,
        }

    async def ai_extract(self, state: CertificateExtractionState) -> dict[str, Any]:
        """Ask the model for the structured fields."""
        return {"raw_response": await self.field_extractor.request(state.text)}

    async def parse_fields(self, state: CertificateExtractionState) -> dict[str, Any]:
        extraction = self.field_extractor.parse(state.raw_response, state.text)
        logger.info(
            f"Parsed {len(extraction.extracted_fields)} fields from {state.file_name} "
            f"via {extraction.method} (confidence {extraction.confidence:.0f})"
        )
        return {"extraction": extraction}

    async def resolve_entities(self, state: CertificateExtractionState) -> dict[str, Any]:
        """Suggest the employee and certificate type the extracted fields refer to."""
        fields = state.extraction.extracted_fields if state.extraction else {}
        updates: dict[str, Any] = {}
        warnings = list(state.warnings)

        employee_name = fields.get("employeeName")
        if employee_name:
            try:
                employees = await self.store.list_employees_for_matching()
            except Exception as e:
                logger.warning(f"Employee lookup failed, no employee suggestion: {e}")
                warnings.append(f"Employee matching unavailable: {e}")
            else:
                updates["suggested_employee"] = _suggestion(
                    self.resolver.resolve_employee(employee_name, employees)
                )

        # The full text stands in for a missing certificate type
        label = fields.get("certificateType") or state.text
        if label.strip():
            try:
                licenses = await self.store.list_licenses()
            except Exception as e:
                logger.warning(f"License lookup failed, no certificate type suggestion: {e}")
                warnings.append(f"Certificate type matching unavailable: {e}")
            else:
                updates["suggested_license"] = _suggestion(
                    self.resolver.resolve_certificate_type(label, licenses)
                )

        updates["warnings"] = warnings
        return updates

    async def finalize(self, state: CertificateExtractionState) -> dict[str, Any]:
        """Finalize processing and update document status."""
        if state.error:
            logger.error(f"Certificate processing failed for {state.document_id}: {state.error}")
            if state.loaded:
                await self.documents.update(
                    state.document_id,
                    {
                        "processing_status": "failed",
                        "ai_confidence_score": 0,
                        "ai_extracted_data": {"error": state.error},
                    },
                )
            return {}

        extraction = state.extraction or ExtractionResult()
        fields = extraction.extracted_fields
        errors = extraction.errors + state.warnings

        await self.documents.update(
            state.document_id,
            {
                "processing_status": "completed",
                "extracted_certificate_number": fields.get("certificateNumber"),
                "extracted_issue_date": fields.get("issueDate"),
                "extracted_expiry_date": fields.get("expiryDate"),
                "extracted_issuer": fields.get("issuer"),
                "extracted_employee_name": fields.get("employeeName"),
                "extracted_license_type": fields.get("certificateType"),
                "ai_confidence_score": extraction.confidence,
                "ai_extracted_data": {
                    "confidence": extraction.confidence,
                    "fields_found": sorted(fields),
                    "method": extraction.method,
                    "text_method": state.text_method,
                    "page_count": state.page_count,
                    "employee_suggestion": (
                        state.suggested_employee.model_dump() if state.suggested_employee else None
                    ),
                    "license_suggestion": (
                        state.suggested_license.model_dump() if state.suggested_license else None
                    ),
                    "errors": errors,
                },
            },
        )

        logger.info(
            f"Certificate processing complete for {state.file_name}: "
            f"{len(fields)} fields, confidence {extraction.confidence:.0f}"
        )
        return {}

    # Graph

    def build_graph(self):
        """Build the certificate extraction graph."""
        workflow = StateGraph(CertificateExtractionState)

        workflow.add_node("load_document", self.load_document)
        workflow.add_node("download_file", self.download_file)
        workflow.add_node("extract_text", self.extract_text)
        workflow.add_node("ocr_render", self.ocr_render)
        workflow.add_node("ai_extract", self.ai_extract)
        workflow.add_node("parse_fields", self.parse_fields)
        workflow.add_node("resolve_entities", self.resolve_entities)
        workflow.add_node("finalize", self.finalize)

        workflow.set_entry_point("load_document")
        workflow.add_conditional_edges(
            "load_document",
            should_continue,
            {"continue": "download_file", "finalize": "finalize"},
        )
        workflow.add_conditional_edges(
            "download_file",
            should_continue,
            {"continue": "extract_text", "finalize": "finalize"},
        )
        workflow.add_conditional_edges(
            "extract_text",
            route_after_text,
            {"ocr": "ocr_render", "extract": "ai_extract", "finalize": "finalize"},
        )
        workflow.add_conditional_edges(
            "ocr_render",
            should_continue,
            {"continue": "ai_extract", "finalize": "finalize"},
        )
        workflow.add_edge("ai_extract", "parse_fields")
        workflow.add_edge("parse_fields", "resolve_entities")
        workflow.add_edge("resolve_entities", "finalize")
        workflow.add_edge("finalize", END)

        # One-shot runs; no checkpointer
        return workflow.compile()

    async def process_document(self, document_id: str, run_id: UUID | None = None) -> DocumentProcessingResult:
        """Process a certificate document through the graph.

        Args:
            document_id: Certificate document id
            run_id: Optional run ID for tracking

        Returns:
            DocumentProcessingResult; on failure ``success`` is False,
            confidence 0 and ``errors`` holds the message
        """
        run_id = run_id or uuid4()
        initial_state = CertificateExtractionState(document_id=str(document_id), run_id=run_id)
        log_with_context(
            logger,
            logging.INFO,
            "Starting certificate extraction",
            run_id=str(run_id),
            document_id=str(document_id),
        )

        try:
            result = await self.graph.ainvoke(initial_state)
        except Exception as e:
            logger.exception(f"Certificate extraction graph failed: {e}")
            await self._mark_failed(str(document_id), str(e))
            return DocumentProcessingResult(success=False, confidence=0.0, errors=[str(e)])

        # ainvoke returns a dict, not the typed state object
        error = result.get("error")
        if error:
            return DocumentProcessingResult(success=False, confidence=0.0, errors=[error])

        extraction = result.get("extraction") or ExtractionResult()
        errors = list(extraction.errors) + list(result.get("warnings") or [])
        return DocumentProcessingResult(
            success=True,
            confidence=extraction.confidence,
            extracted_data=extraction.extracted_fields,
            suggested_employee=result.get("suggested_employee"),
            suggested_license=result.get("suggested_license"),
            errors=errors or None,
        )

    async def _mark_failed(self, document_id: str, message: str) -> None:
        try:
            await self.documents.update(
                document_id,
                {"processing_status": "failed", "ai_confidence_score": 0, "ai_extracted_data": {"error": message}},
            )
        except Exception as e:
            logger.error(f"Could not mark document {document_id} failed: {e}")
