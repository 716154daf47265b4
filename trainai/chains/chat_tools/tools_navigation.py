"""Navigation tool implementation."""

from trainai.chains.chat_tools.arguments import NavigateToPageArgs
from trainai.chains.chat_tools.base import ToolServices, ToolTurn
from trainai.core.schemas_ai import AIResponse, navigate_action


async def _navigate_to_page(tools: ToolServices, args: NavigateToPageArgs, turn: ToolTurn) -> AIResponse:
    path = args.path.strip()
    if not path.startswith("/"):
        path = "/" + path
    reason = args.reason.strip()

    return AIResponse(
        content=turn.assistant_content or f"I'll take you to {reason or 'the requested page'}.",
        actions=[navigate_action(path, reason or "Navigate to page")],
    )
