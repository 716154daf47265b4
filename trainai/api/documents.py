"""API endpoints for certificate document extraction."""

from fastapi import APIRouter, Depends, HTTPException

from trainai.api.deps import get_current_actor, get_services
from trainai.core.logging import get_logger
from trainai.core.schemas_documents import DocumentProcessingResult
from trainai.core.schemas_mutations import Actor
from trainai.core.services import ServiceContainer

logger = get_logger(__name__)

router = APIRouter()


@router.post("/{document_id}/process", response_model=DocumentProcessingResult, response_model_by_alias=True)
async def process_document(
    document_id: str,
    actor: Actor = Depends(get_current_actor),
    services: ServiceContainer = Depends(get_services),
) -> DocumentProcessingResult:
    """Run an uploaded certificate through extraction and return the suggestions."""
    document = await services.documents.get(document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")

    logger.info(f"{actor.email} requested extraction of {document.get('file_name')}")
    return await services.pipeline.process_document(document_id)
