"""Pydantic schemas for the AI assistant request/response contract."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatTurn(BaseModel):
    """A prior message in the conversation."""

    role: Literal["user", "assistant"]
    content: str


class PlatformContext(BaseModel):
    """Client-side hints about where the user is."""

    model_config = ConfigDict(populate_by_name=True)

    current_page: str | None = Field(default=None, alias="currentPage")
    user_role: str | None = Field(default=None, alias="userRole")
    available_actions: list[str] = Field(default_factory=list, alias="availableActions")


class AIRequest(BaseModel):
    """Inbound assistant request."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1)
    conversation_history: list[ChatTurn] = Field(default_factory=list, alias="conversationHistory")
    context: PlatformContext | None = None


ActionType = Literal["navigate", "create", "update", "delete", "query"]


class AIAction(BaseModel):
    """A client-side action the assistant proposes (navigation, etc.)."""

    model_config = ConfigDict(populate_by_name=True)

    type: ActionType
    description: str
    function: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    requires_confirmation: bool = Field(default=False, alias="requiresConfirmation")


class AIResponse(BaseModel):
    """Assistant reply returned to the client."""

    content: str
    actions: list[AIAction] | None = None
    suggestions: list[str] | None = None


def navigate_action(path: str, description: str) -> AIAction:
    """Build a navigation action that runs without confirmation."""
    return AIAction(
        type="navigate",
        description=description,
        function="navigate",
        parameters={"path": path},
        requires_confirmation=False,
    )
