"""Resilient caller for external provider requests.

One retry loop for every provider call (assistant chat, field extraction,
vision OCR). The call is passed in as a zero-argument coroutine factory so
each attempt issues a fresh request. Rate limiting shows up either as a 429
response or, through the OpenAI SDK, as ``openai.RateLimitError``.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator, TypeVar

import httpx
import openai

from trainai.core.logging import get_logger
from trainai.core.results import RetryExhaustedError

logger = get_logger(__name__)

RATE_LIMIT_STATUS = 429

TRANSPORT_ERRORS = (httpx.TransportError, openai.APIConnectionError)

R = TypeVar("R")


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff configuration."""

    max_attempts: int = 5
    base_delay_ms: int = 3000
    backoff_factor: float = 2.0
    cap_ms: int = 30000

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.RETRY_MAX_ATTEMPTS,
            base_delay_ms=settings.RETRY_BASE_DELAY_MS,
            backoff_factor=settings.RETRY_BACKOFF_FACTOR,
            cap_ms=settings.RETRY_CAP_MS,
        )

    def delay_ms(self, failed_attempt: int) -> int:
        """Delay after the given (1-indexed) failed attempt, capped."""
        raw = self.base_delay_ms * (self.backoff_factor ** (failed_attempt - 1))
        return int(min(raw, self.cap_ms))

    def delays(self) -> Iterator[int]:
        """Planned waits between attempts (one fewer than max_attempts)."""
        for attempt in range(1, self.max_attempts):
            yield self.delay_ms(attempt)


def _rate_limited(response: Any) -> bool:
    return getattr(response, "status_code", None) == RATE_LIMIT_STATUS


async def call_with_retry(
    fn: Callable[[], Awaitable[R]],
    policy: RetryPolicy,
    *,
    operation: str = "provider call",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> R:
    """
    Call ``fn`` until it is not rate limited or attempts run out.

    Any result other than a 429 response is returned to the caller as-is,
    including error statuses, so callers keep their own handling of 4xx/5xx
    bodies. Provider exceptions other than rate limiting and transport
    failures propagate immediately.

    Args:
        fn: Coroutine factory issuing one request
        policy: Backoff configuration
        operation: Label used in logs and the terminal error
        sleep: Awaitable sleep, injectable for tests

    Returns:
        The first result that was not rate limited

    Raises:
        RetryExhaustedError: After ``policy.max_attempts`` failed attempts
    """
    last_status: int | None = None
    last_error: Exception | None = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            response = await fn()
        except openai.RateLimitError as e:
            last_error = e
            last_status = RATE_LIMIT_STATUS
            logger.warning(f"{operation} attempt {attempt}/{policy.max_attempts} rate limited (429)")
        except TRANSPORT_ERRORS as e:
            last_error = e
            last_status = None
            logger.warning(f"{operation} attempt {attempt}/{policy.max_attempts} transport error: {e}")
        else:
            if not _rate_limited(response):
                if attempt > 1:
                    logger.info(f"{operation} succeeded on attempt {attempt}")
                return response
            last_status = RATE_LIMIT_STATUS
            last_error = None
            logger.warning(f"{operation} attempt {attempt}/{policy.max_attempts} rate limited (429)")

        if attempt < policy.max_attempts:
            delay_ms = policy.delay_ms(attempt)
            logger.info(f"Retrying {operation} in {delay_ms}ms")
            await sleep(delay_ms / 1000)

    cause = f"last status: {last_status}" if last_status else f"last error: {last_error}"
    message = (
        f"{operation} failed after {policy.max_attempts} attempts ({cause}). "
        "The AI provider is most likely rate limiting this API key; "
        "check the account's usage limits or try again shortly."
    )
    logger.error(message)
    raise RetryExhaustedError(
        message, attempts=policy.max_attempts, last_status=last_status
    ) from last_error
