"""API router for v1 endpoints."""

from fastapi import APIRouter

from trainai.api import chat, documents

router = APIRouter()

# Assistant chat and tool registry
router.include_router(chat.router, prefix="/ai", tags=["ai"])

# Certificate document extraction
router.include_router(documents.router, prefix="/documents", tags=["documents"])
