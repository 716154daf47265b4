"""LLM client for an OpenAI-compatible chat completions endpoint.

Covers the three call shapes the engine needs (tool-calling chat, plain text
extraction, vision OCR) plus the JSON cleanup helpers used to read structured
model output.
"""

import asyncio
import json
import re
from typing import Any, Awaitable, Callable

import httpx
from openai import APIStatusError, AsyncOpenAI
from pydantic import BaseModel

from trainai.core.config import Settings
from trainai.core.logging import get_logger
from trainai.core.results import LLMResponseError
from trainai.core.retry import RetryPolicy, call_with_retry

logger = get_logger(__name__)


# =============================================================================
# Response models
# =============================================================================


class FunctionCall(BaseModel):
    """Function name plus raw JSON arguments as sent by the model."""

    name: str
    arguments: str = "{}"


class ChatToolCall(BaseModel):
    """One entry of ``message.tool_calls``."""

    id: str = ""
    type: str = "function"
    function: FunctionCall


class ChatMessage(BaseModel):
    """The assistant message of the first choice."""

    role: str = "assistant"
    content: str | None = None
    tool_calls: list[ChatToolCall] | None = None
    function_call: FunctionCall | None = None  # legacy single-function format

    @property
    def all_tool_calls(self) -> list[ChatToolCall]:
        """Tool calls in the modern format, with a legacy function_call folded in."""
        if self.tool_calls:
            return list(self.tool_calls)
        if self.function_call:
            return [ChatToolCall(id="legacy", function=self.function_call)]
        return []


# =============================================================================
# JSON helpers
# =============================================================================


def strip_llm_fences(raw_output: str) -> str:
    """Strip markdown code fences from LLM output.

    Handles: ```json ... ```, ``` ... ```, an unterminated opening fence,
    leading/trailing whitespace.
    """
    cleaned = raw_output.strip()

    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", cleaned, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()

    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def repair_json_brackets(text: str) -> str:
    """Close a truncated JSON document by appending the missing brackets.

    Tracks unmatched ``{``/``[`` outside string literals and appends the
    matching closers innermost-first. An unterminated string is closed and a
    dangling trailing comma removed before closing.

    Args:
        text: JSON text, possibly cut off mid-structure

    Returns:
        Text with closers appended (unchanged if already balanced)
    """
    stack: list[str] = []
    in_string = False
    escaped = False

    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in "{[":
            stack.append(ch)
        elif ch in "}]":
            if stack and ((ch == "}" and stack[-1] == "{") or (ch == "]" and stack[-1] == "[")):
                stack.pop()

    repaired = text
    if in_string:
        repaired += '"'

    if not stack:
        return repaired

    repaired = repaired.rstrip()
    if repaired.endswith(","):
        repaired = repaired[:-1]

    closers = "".join("}" if opener == "{" else "]" for opener in reversed(stack))
    return repaired + closers


def parse_llm_json_dict(raw_output: str) -> dict[str, Any]:
    """
    Parse LLM output as a JSON object, repairing truncation if needed.

    Steps: strip code fences, skip any prose before the first ``{``, parse;
    on failure balance the brackets and parse again.

    Args:
        raw_output: Raw string from LLM response

    Returns:
        Parsed dict

    Raises:
        json.JSONDecodeError: If the text is not valid JSON even after repair
        ValueError: If the JSON is valid but not an object
    """
    cleaned = strip_llm_fences(raw_output)
    start = cleaned.find("{")
    if start > 0:
        cleaned = cleaned[start:]

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        repaired = repair_json_brackets(cleaned)
        logger.debug(f"Repairing truncated JSON ({len(cleaned)} chars)")
        parsed = json.loads(repaired)

    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


# =============================================================================
# Client
# =============================================================================


class LLMClient:
    """Chat completions client with shared retry handling.

    The SDK's own retries are disabled; every call goes through
    ``call_with_retry`` so rate limiting is handled in one place.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self._client = AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
            http_client=http_client,
            max_retries=0,
        )
        self._policy = policy or RetryPolicy.from_settings(settings)
        self._sleep = sleep

    async def chat(
        self,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        operation: str = "chat completion",
    ) -> ChatMessage:
        """
        Send a chat completion request and return the first choice's message.

        Args:
            messages: OpenAI-format message list
            tools: Optional tool definitions
            tool_choice: Optional tool choice mode (e.g. "auto")
            model: Model override (defaults to OPENAI_MODEL)
            max_tokens: Token limit override (defaults to CHAT_MAX_TOKENS)
            temperature: Temperature override (defaults to CHAT_TEMPERATURE)
            operation: Label for logs and retry errors

        Returns:
            Assistant message with content and/or tool calls

        Raises:
            RetryExhaustedError: If every attempt was rate limited or failed in transport
            LLMResponseError: If the endpoint returns an error status or no choices
        """
        request: dict[str, Any] = {
            "model": model or self.settings.OPENAI_MODEL,
            "messages": messages,
            "max_tokens": max_tokens if max_tokens is not None else self.settings.CHAT_MAX_TOKENS,
            "temperature": temperature if temperature is not None else self.settings.CHAT_TEMPERATURE,
        }
        if tools:
            request["tools"] = tools
            request["tool_choice"] = tool_choice or "auto"

        try:
            completion = await call_with_retry(
                lambda: self._client.chat.completions.create(**request),
                self._policy,
                operation=operation,
                sleep=self._sleep,
            )
        except APIStatusError as e:
            logger.error(f"{operation} failed: {e.status_code} - {e.message}")
            raise LLMResponseError(
                f"AI provider error: {e.status_code} - {e.message}",
                status_code=e.status_code,
            ) from e

        if not completion.choices:
            raise LLMResponseError("No response from AI provider")

        message = ChatMessage.model_validate(completion.choices[0].message.model_dump(exclude_none=True))
        logger.debug(
            f"{operation} response: has_content={bool(message.content)}, "
            f"tool_calls={len(message.all_tool_calls)}"
        )
        return message

    async def complete_text(self, prompt: str) -> str:
        """Single-prompt completion tuned for deterministic extraction."""
        message = await self.chat(
            [{"role": "user", "content": prompt}],
            max_tokens=self.settings.EXTRACTION_MAX_TOKENS,
            temperature=self.settings.EXTRACTION_TEMPERATURE,
            operation="text extraction",
        )
        return message.content or ""

    async def complete_vision(self, prompt: str, image_b64: str, mime_type: str = "image/jpeg") -> str:
        """Vision completion with a base64 image embedded as a data URI."""
        message = await self.chat(
            [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": f"data:{mime_type};base64,{image_b64}",
                                "detail": "high",
                            },
                        },
                    ],
                }
            ],
            model=self.settings.VISION_MODEL,
            max_tokens=self.settings.EXTRACTION_MAX_TOKENS,
            temperature=self.settings.EXTRACTION_TEMPERATURE,
            operation="vision OCR",
        )
        return message.content or ""
