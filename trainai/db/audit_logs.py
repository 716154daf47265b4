"""Append-only audit trail for assistant mutations."""

from supabase import AsyncClient

from trainai.core.logging import get_logger
from trainai.core.schemas_mutations import AuditLogEntry

logger = get_logger(__name__)


class AuditLogStore:
    """Writes ``AuditLogEntry`` rows to ``ai_audit_logs``. Never updates or deletes."""

    def __init__(self, client: AsyncClient):
        self._client = client

    async def append(self, entry: AuditLogEntry) -> None:
        await (
            self._client.table("ai_audit_logs")
            .insert(
                {
                    "user_id": entry.actor_id,
                    "user_email": entry.actor_email,
                    "operation": entry.operation,
                    "table_name": entry.target_table,
                    "record_id": entry.target_id,
                    "changes": entry.changed_fields,
                    "outcome": entry.outcome,
                    "source": entry.source,
                    "timestamp": entry.timestamp.isoformat(),
                }
            )
            .execute()
        )
        logger.debug(f"Audit entry written: {entry.operation} on {entry.target_table} ({entry.outcome})")
