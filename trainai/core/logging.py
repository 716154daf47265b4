"""Key=value logging for the Training AI Engine.

Every module logger hangs off the ``trainai`` logger, which owns the single
stdout handler. Context passed through ``log_with_context`` is rendered after
the message, with the ids used to follow one chat turn or one extraction run
(``run_id``, ``document_id``, ``tool``, ``actor_id``) always first.
"""

import json
import logging
import sys
from typing import Any

from pydantic import ValidationError

ROOT_LOGGER = "trainai"
CONTEXT_KEYS = ("run_id", "document_id", "tool", "actor_id")


def _render(value: Any) -> str:
    text = str(value)
    if not text or any(ch.isspace() or ch in '="' for ch in text):
        return json.dumps(text)
    return text


class StructuredFormatter(logging.Formatter):
    """One line per record: ``ts level logger msg`` then the context pairs."""

    def format(self, record: logging.LogRecord) -> str:
        pairs: list[tuple[str, Any]] = [
            ("ts", self.formatTime(record, self.datefmt)),
            ("level", record.levelname),
            ("logger", record.name),
            ("msg", record.getMessage()),
        ]

        context: dict[str, Any] = dict(getattr(record, "context", None) or {})
        pairs.extend((key, context.pop(key)) for key in CONTEXT_KEYS if key in context)
        pairs.extend(sorted(context.items()))

        line = " ".join(f"{key}={_render(value)}" for key, value in pairs)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _level_for_env() -> int:
    from trainai.core.config import get_settings

    try:
        env = get_settings().TRAINAI_ENV
    except ValidationError:
        # Required settings missing (e.g. at import time in tests)
        return logging.INFO
    return logging.DEBUG if env == "dev" else logging.INFO


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        root.addHandler(handler)
        root.setLevel(_level_for_env())
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the configured ``trainai`` logger.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger whose records reach the shared stdout handler
    """
    _configure_root()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: int, msg: str, **context: Any) -> None:
    """Log ``msg`` with key=value context (run_id, document_id, tool, actor_id, ...)."""
    logger.log(level, msg, extra={"context": context})
