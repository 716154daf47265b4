"""Pydantic schemas for secure mutations, actors and audit entries."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field


class Capability(str, Enum):
    """Permission names checked before a mutation runs."""

    EDIT_EMPLOYEES = "edit_employees"
    CREATE_TRAININGS = "create_trainings"
    EDIT_TRAININGS = "edit_trainings"
    MANAGE_PARTICIPANTS = "manage_participants"
    MANAGE_CERTIFICATES = "manage_certificates"


# Roles that receive every capability regardless of granted permissions
ADMIN_ROLES = frozenset({"admin"})


class Actor(BaseModel):
    """The authenticated user on whose behalf the assistant acts."""

    user_id: UUID
    email: str | None = None
    role: str | None = None
    capabilities: frozenset[str] = Field(default_factory=frozenset)
    session_valid: bool = True

    def has_capability(self, capability: Capability | str) -> bool:
        if self.role in ADMIN_ROLES:
            return True
        value = capability.value if isinstance(capability, Capability) else capability
        return value in self.capabilities


class Operation(BaseModel):
    """A pending data mutation."""

    action: Literal["insert", "update"]
    target_table: str
    target_id: str | None = None
    fields: dict[str, Any] = Field(default_factory=dict)
    required_capability: Capability
    name: str = Field(..., description="Audit operation label, e.g. UPDATE_EMPLOYEE")


class ValidationResult(BaseModel):
    """Outcome of whitelist and format checks."""

    ok: bool
    rejected_fields: list[str] = Field(default_factory=list)
    reason: str = ""


class AuditLogEntry(BaseModel):
    """Append-only record of a mutation performed through the assistant."""

    actor_id: str
    actor_email: str | None = None
    operation: str
    target_table: str
    target_id: str | None = None
    changed_fields: dict[str, Any] = Field(default_factory=dict)
    outcome: Literal["success", "denied", "rejected", "failed"] = "success"
    source: str = "ai_assistant"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CertificateLinkKind(str, Enum):
    """How a certificate being linked relates to the holder's existing records."""

    NEW = "new"
    RENEWAL = "renewal"
    DUPLICATE = "duplicate"
