"""Tool dispatch: routes one decoded tool call to its handler."""

import logging
from typing import Any, Awaitable, Callable

from trainai.core.logging import get_logger, log_with_context
from trainai.core.schemas_ai import AIResponse

from .arguments import DecodedToolCall
from .base import GENERIC_ERROR_SUGGESTIONS, ToolServices, ToolTurn
from .tools_certificates import _update_employee_certificate
from .tools_employees import _navigate_to_employee, _search_employees, _update_employee_by_name
from .tools_navigation import _navigate_to_page
from .tools_trainings import _add_training_participant, _create_training_secure

logger = get_logger(__name__)

ToolHandler = Callable[[ToolServices, Any, ToolTurn], Awaitable[AIResponse]]

HANDLERS: dict[str, ToolHandler] = {
    "update_employee_by_name": _update_employee_by_name,
    "navigate_to_page": _navigate_to_page,
    "search_employees": _search_employees,
    "navigate_to_employee": _navigate_to_employee,
    "create_training_secure": _create_training_secure,
    "add_training_participant": _add_training_participant,
    "update_employee_certificate": _update_employee_certificate,
}

# Tools that go through the secure mutation layer
MUTATING_TOOLS = frozenset(
    {
        "update_employee_by_name",
        "create_training_secure",
        "add_training_participant",
        "update_employee_certificate",
    }
)


class ToolDispatcher:
    """Runs exactly one handler per tool call."""

    def __init__(self, services: ToolServices):
        self.services = services

    async def dispatch(self, call: DecodedToolCall, turn: ToolTurn) -> AIResponse:
        """
        Execute a decoded tool call.

        Args:
            call: Tool call with validated arguments
            turn: Actor and message context of the current turn

        Returns:
            The handler's response; store failures become a generic apology
        """
        handler = HANDLERS[call.name]
        log_with_context(
            logger,
            logging.INFO,
            f"Executing tool {call.name}",
            tool=call.name,
            actor_id=str(turn.actor.user_id) if turn.actor else None,
            mutating=call.name in MUTATING_TOOLS,
        )

        try:
            return await handler(self.services, call.arguments, turn)
        except Exception as e:
            logger.error(f"Error executing tool {call.name}: {e}", exc_info=True)
            return AIResponse(
                content=f"I encountered an error while handling that request ({call.name.replace('_', ' ')}).",
                suggestions=GENERIC_ERROR_SUGGESTIONS,
            )
