"""Shared pieces for tool handlers: services, turn info, reference resolution, error text."""

import re
from dataclasses import dataclass, field
from typing import Any

from trainai.core.entity_resolver import EntityResolver, MatchCandidate
from trainai.core.results import ErrorKind, MutationError
from trainai.core.schemas_ai import AIResponse
from trainai.core.schemas_mutations import Actor
from trainai.core.secure_mutations import SecureMutationLayer

_UUID = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

GENERIC_ERROR_SUGGESTIONS = ["Try again", "Check permissions", "Contact administrator"]


@dataclass
class ToolServices:
    """Collaborators the tool handlers work through."""

    store: Any
    resolver: EntityResolver
    mutations: SecureMutationLayer


@dataclass
class ToolTurn:
    """The assistant turn a tool call belongs to."""

    actor: Actor | None
    user_message: str = ""
    assistant_content: str | None = None


@dataclass
class Resolution:
    """Outcome of turning a free-text reference into one record."""

    reference: str
    match: MatchCandidate | None = None
    candidates: list[MatchCandidate] = field(default_factory=list)
    record: dict[str, Any] | None = None

    @property
    def ambiguous(self) -> bool:
        return self.match is None and len(self.candidates) > 1


def looks_like_id(value: str) -> bool:
    return bool(_UUID.match(value.strip()))


async def resolve_employee(tools: ToolServices, reference: str) -> Resolution:
    """Resolve an id, name, email or employee number to one employee.

    An existing id is used as-is; an id that matches no record resolves to
    nothing. Anything else goes through the fuzzy resolver.
    """
    reference = reference.strip()
    if looks_like_id(reference):
        record = await tools.store.get_employee(reference)
        if record is None:
            return Resolution(reference=reference)
        name = record.get("name") or f"{record.get('first_name', '')} {record.get('last_name', '')}".strip()
        return Resolution(
            reference=reference,
            match=MatchCandidate(entity_id=str(record["id"]), entity_name=name, similarity=1.0),
            record=record,
        )

    pool = await tools.store.list_employees_for_matching()
    candidates = tools.resolver.rank_employees(reference, pool)
    return Resolution(reference=reference, match=tools.resolver.pick(candidates), candidates=candidates)


async def resolve_course(tools: ToolServices, reference: str) -> Resolution:
    """Resolve a course id or title to one course."""
    reference = reference.strip()
    if looks_like_id(reference):
        record = await tools.store.get_course(reference)
        if record is None:
            return Resolution(reference=reference)
        return Resolution(
            reference=reference,
            match=MatchCandidate(entity_id=str(record["id"]), entity_name=record.get("title", ""), similarity=1.0),
            record=record,
        )

    pool = await tools.store.list_courses_for_matching()
    candidates = tools.resolver.rank_courses(reference, pool)
    return Resolution(reference=reference, match=tools.resolver.pick(candidates), candidates=candidates)


def clarification_response(resolution: Resolution, noun: str, suggestions: list[str]) -> AIResponse:
    """Ask the user to pin down an unresolved or ambiguous reference."""
    if resolution.ambiguous:
        names = ", ".join(c.entity_name for c in resolution.candidates[:5])
        return AIResponse(
            content=(
                f'I found more than one {noun} matching "{resolution.reference}": {names}. '
                f"Which one did you mean?"
            ),
            suggestions=[c.entity_name for c in resolution.candidates[:3]],
        )
    return AIResponse(
        content=(
            f'I couldn\'t find {"an" if noun[0] in "aeiou" else "a"} {noun} matching "{resolution.reference}". '
            "Could you check the spelling or give me more details?"
        ),
        suggestions=suggestions,
    )


def error_response(error: MutationError, subject: str = "that") -> AIResponse:
    """User-facing text for a failed mutation."""
    if error.kind == ErrorKind.AUTHENTICATION:
        return AIResponse(content=error.message, suggestions=["Sign in again"])
    if error.kind == ErrorKind.PERMISSION:
        return AIResponse(content=f"{error.message}.", suggestions=["Contact administrator"])
    if error.kind == ErrorKind.VALIDATION:
        fields = f" (rejected: {', '.join(error.fields)})" if error.fields else ""
        return AIResponse(
            content=f"I couldn't save {subject}: {error.message}{fields}.",
            suggestions=["Change the value", "Update a different field", "Try again"],
        )
    if error.kind == ErrorKind.NOT_FOUND:
        return AIResponse(
            content=f"{error.message}. Could you tell me which one you mean?",
            suggestions=["Search again", "Check spelling"],
        )
    if error.kind == ErrorKind.DUPLICATE:
        return AIResponse(content=f"{error.message}.", suggestions=["View existing records", "Try something else"])
    return AIResponse(
        content=f"Hmm, I ran into an issue saving {subject}. {error.message}",
        suggestions=GENERIC_ERROR_SUGGESTIONS,
    )
