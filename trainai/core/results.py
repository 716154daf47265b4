"""Error kinds and explicit results for fallible AI operations.

Mutation and resolution steps return a ``Result`` instead of raising, so the
assistant can decide at one place how each failure reads to the user.
Exceptions are kept for external I/O that gives up (provider retries exhausted,
document download failures).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure categories surfaced by the AI layer."""

    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    TRANSIENT_PROVIDER = "transient_provider"
    PARSING = "parsing"
    DUPLICATE = "duplicate"
    STORE = "store"


@dataclass(frozen=True)
class MutationError:
    """A failed step, with the offending field names when validation failed."""

    kind: ErrorKind
    message: str
    fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a ``MutationError``."""

    value: T | None = None
    error: MutationError | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T, *tags: str) -> "Result[T]":
        return cls(value=value, tags=tags)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, fields: tuple[str, ...] | list[str] = ()) -> "Result[T]":
        return cls(error=MutationError(kind=kind, message=message, fields=tuple(fields)))


class TransientProviderError(Exception):
    """Raised when an external provider call fails for a transient reason."""


class RetryExhaustedError(TransientProviderError):
    """Raised by the retry wrapper once every attempt has failed."""

    def __init__(self, message: str, attempts: int, last_status: int | None = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_status = last_status


class LLMResponseError(Exception):
    """Raised when the model endpoint answers with an unusable response."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
