"""API endpoints for the training assistant."""

from fastapi import APIRouter, Depends, HTTPException

from trainai.api.deps import get_current_actor, get_services
from trainai.chains.chat_tools import get_tool_definitions
from trainai.core.logging import get_logger
from trainai.core.results import LLMResponseError, RetryExhaustedError
from trainai.core.schemas_ai import AIRequest, AIResponse
from trainai.core.schemas_mutations import Actor
from trainai.core.services import ServiceContainer

logger = get_logger(__name__)

router = APIRouter()


@router.post("/chat", response_model=AIResponse, response_model_exclude_none=True)
async def chat(
    request: AIRequest,
    actor: Actor = Depends(get_current_actor),
    services: ServiceContainer = Depends(get_services),
) -> AIResponse:
    """
    Answer one assistant message, running at most one tool.

    Raises:
        HTTPException 503: The model provider kept rate limiting
        HTTPException 502: The model provider returned an error
    """
    try:
        return await services.assistant.handle(request, actor)
    except RetryExhaustedError as e:
        logger.error(f"Assistant unavailable for {actor.email}: {e}")
        raise HTTPException(
            status_code=503,
            detail="The AI service is busy right now. Please try again shortly.",
        ) from e
    except LLMResponseError as e:
        logger.error(f"Assistant provider error for {actor.email}: {e}")
        raise HTTPException(status_code=502, detail="The AI service returned an error.") from e


@router.get("/tools")
async def list_tools(actor: Actor = Depends(get_current_actor)) -> dict:
    """Tool registry the assistant offers to the model."""
    return {"tools": get_tool_definitions()}
