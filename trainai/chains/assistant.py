"""
Natural-language assistant: one model turn, at most one tool.

Flow per request:
1. Build the system prompt (rules + live platform summary + platform knowledge)
2. Send prompt, trimmed history and the user message with the tool registry
   (``tool_choice="auto"``)
3. Plain text -> returned verbatim with keyword-based suggestions
   One tool call -> decoded and dispatched to exactly one handler
   Several tool calls -> nothing runs; the user is asked to pick one
"""

import json

from trainai.chains.chat_tools import (
    ToolArgumentsError,
    ToolDispatcher,
    ToolTurn,
    UnknownToolError,
    decode_tool_call,
    get_tool_definitions,
)
from trainai.context.knowledge_base import PLATFORM_KNOWLEDGE
from trainai.context.platform_context import PlatformContextAggregator
from trainai.core.config import Settings
from trainai.core.llm import ChatMessage, LLMClient
from trainai.core.logging import get_logger
from trainai.core.schemas_ai import AIRequest, AIResponse, PlatformContext
from trainai.core.schemas_mutations import Actor

logger = get_logger(__name__)

RETRY_DIFFERENTLY = "Sorry, I didn't quite get that right. Let me try that differently - could you rephrase your request?"
DEFAULT_REPLY = "I can help you with that. What would you like to do?"

SYSTEM_PROMPT = """You are a helpful AI assistant for a Training and Certification Management System. You help users navigate the platform, answer questions, and perform tasks.

**CRITICAL RULES:**
1. For ANY request to modify employee data (change, update, modify, set, edit), you MUST use the update_employee_by_name function. Do NOT respond with text about what you'll do - actually call the function!
2. For ANY request asking for detailed employee information, you MUST use the search_employees function to get complete information. Do NOT rely on the limited context data below.
3. When users want to view an employee's profile, use navigate_to_employee with their name, email or employee number.
4. Call at most ONE function per reply.
5. Never invent ids. Pass names, emails or course titles as given; the system resolves them.

**Current Context:**
- User is currently on: {current_page}
- User role: {user_role}
- Available actions: {available_actions}

**Current Platform Data:**
{platform_data}

**Platform Knowledge:**
{platform_knowledge}

**Instructions:**
1. Always be helpful and concise
2. Use the navigation function to help users go to specific pages, with the exact routes from the navigation knowledge
3. Provide step-by-step guidance for complex tasks
4. Reference REAL platform data when answering questions about employees, courses and trainings
5. If asked about counts or statistics, calculate from the real data
6. Remember previous conversation context and refer to it naturally

**Security & Permissions:**
- All operations run with the current user's permissions; you have no elevated privileges
- Every change is validated and audit logged

**Response Format:**
- Speak naturally like a helpful colleague, not a robot
- Be concise and direct
- Reference people by their first names when appropriate"""


def build_system_prompt(context: PlatformContext | None, platform_data: str) -> str:
    context = context or PlatformContext()
    return SYSTEM_PROMPT.format(
        current_page=context.current_page or "unknown",
        user_role=context.user_role or "unknown",
        available_actions=", ".join(context.available_actions) or "navigate, query",
        platform_data=platform_data or "No current data available",
        platform_knowledge=json.dumps(PLATFORM_KNOWLEDGE, indent=2),
    )


def generate_suggestions(message: str) -> list[str]:
    """Follow-up suggestions keyed off words in the user's message."""
    lower = message.lower()

    if "schedule" in lower or "training" in lower:
        return ["Show me available courses", "Find instructors", "Check participant availability", "View training calendar"]

    if "employee" in lower or "participant" in lower:
        return ["Search for employees", "View employee profiles", "Check training history", "Add new employee"]

    if "certificate" in lower or "license" in lower:
        return ["Check expiring certificates", "View all certificates", "Add new certificate", "Generate compliance report"]

    return ["Schedule a training", "View employee list", "Check certificates", "See recent activity"]


class AssistantService:
    """Handles one assistant request end to end."""

    def __init__(
        self,
        llm: LLMClient,
        context_aggregator: PlatformContextAggregator,
        dispatcher: ToolDispatcher,
        settings: Settings,
    ):
        self.llm = llm
        self.context_aggregator = context_aggregator
        self.dispatcher = dispatcher
        self.history_limit = settings.CHAT_HISTORY_LIMIT

    async def build_messages(self, request: AIRequest) -> list[dict]:
        snapshot = await self.context_aggregator.build()
        platform_data = self.context_aggregator.format_for_prompt(snapshot)

        messages: list[dict] = [{"role": "system", "content": build_system_prompt(request.context, platform_data)}]
        history = request.conversation_history[-self.history_limit :] if self.history_limit > 0 else []
        messages.extend({"role": turn.role, "content": turn.content} for turn in history)
        messages.append({"role": "user", "content": request.message})
        return messages

    async def handle(self, request: AIRequest, actor: Actor | None) -> AIResponse:
        """
        Answer a user message, running at most one tool.

        Args:
            request: Message, prior turns and client context
            actor: Authenticated user, required by mutating tools

        Returns:
            AIResponse with content, optional actions and suggestions

        Raises:
            RetryExhaustedError: If the model stayed rate limited through every retry
            LLMResponseError: If the model endpoint failed outright
        """
        messages = await self.build_messages(request)
        reply = await self.llm.chat(
            messages,
            tools=get_tool_definitions(),
            tool_choice="auto",
            operation="assistant chat",
        )
        return await self.route(reply, request.message, actor)

    async def route(self, reply: ChatMessage, user_message: str, actor: Actor | None) -> AIResponse:
        """Turn the model's reply into a response, dispatching its tool call if any."""
        tool_calls = reply.all_tool_calls

        if not tool_calls:
            return self._plain_text(reply.content, user_message)

        if len(tool_calls) > 1:
            names = [call.function.name.replace("_", " ") for call in tool_calls]
            logger.warning(f"Model requested {len(tool_calls)} tool calls in one turn; none executed")
            return AIResponse(
                content=(
                    "I can only do one thing at a time, and that request needs several steps "
                    f"({', '.join(names)}). Which one should I do first?"
                ),
                suggestions=[name.capitalize() for name in names[:4]],
            )

        call = tool_calls[0]
        try:
            decoded = decode_tool_call(call)
        except UnknownToolError:
            logger.warning(f"Model called unknown tool {call.function.name!r}; answering as text")
            return self._plain_text(reply.content, user_message)
        except ToolArgumentsError as e:
            logger.warning(f"Could not decode tool arguments: {e}")
            return AIResponse(content=RETRY_DIFFERENTLY, suggestions=generate_suggestions(user_message))

        turn = ToolTurn(actor=actor, user_message=user_message, assistant_content=reply.content)
        return await self.dispatcher.dispatch(decoded, turn)

    @staticmethod
    def _plain_text(content: str | None, user_message: str) -> AIResponse:
        return AIResponse(content=content or DEFAULT_REPLY, suggestions=generate_suggestions(user_message))
