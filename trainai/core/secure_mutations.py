"""
Secure mutation layer for assistant-initiated writes.

Every data-changing operation runs the same strictly ordered pipeline:

1. authentication  (actor has a valid session)
2. permission      (actor holds the operation's capability)
3. validation      (whitelisted fields only, typed fields format-checked)
4. execution       (one insert or update through the store)
5. audit           (one ``ai_audit_logs`` entry per successful mutation)

Each step returns a ``Result``; nothing is written unless steps 1-3 pass.
"""

import logging
import re
from typing import Any

from dateutil.parser import isoparse

from trainai.core.document_processing.dates import normalize_date
from trainai.core.logging import get_logger, log_with_context
from trainai.core.results import ErrorKind, MutationError, Result
from trainai.core.schemas_mutations import (
    Actor,
    AuditLogEntry,
    Capability,
    CertificateLinkKind,
    Operation,
    ValidationResult,
)

logger = get_logger(__name__)

FIELD_WHITELISTS: dict[str, frozenset[str]] = {
    "employees": frozenset(
        {
            "first_name",
            "last_name",
            "tussenvoegsel",
            "roepnaam",
            "email",
            "phone",
            "mobile_phone",
            "date_of_birth",
            "address",
            "city",
            "country",
            "nationality",
            "job_title",
            "department",
            "notes",
        }
    ),
    "trainings": frozenset(
        {
            "course_id",
            "start_date",
            "end_date",
            "instructor",
            "location",
            "max_participants",
            "notes",
            "status",
        }
    ),
    "training_participants": frozenset({"training_id", "employee_id", "status"}),
    "employee_licenses": frozenset(
        {
            "employee_id",
            "license_id",
            "license_type",
            "certificate_number",
            "issue_date",
            "expiry_date",
            "issuer",
            "status",
        }
    ),
}

REQUIRED_ON_INSERT: dict[str, tuple[str, ...]] = {
    "trainings": ("course_id", "start_date"),
    "training_participants": ("training_id", "employee_id"),
    "employee_licenses": ("employee_id",),
}

DATE_FIELDS = frozenset({"date_of_birth", "start_date", "end_date", "issue_date", "expiry_date"})
POSITIVE_INT_FIELDS = frozenset({"max_participants"})
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DENIAL_MESSAGES: dict[Capability, str] = {
    Capability.EDIT_EMPLOYEES: "You do not have permission to edit employee data",
    Capability.CREATE_TRAININGS: "You do not have permission to create trainings",
    Capability.EDIT_TRAININGS: "You do not have permission to edit trainings",
    Capability.MANAGE_PARTICIPANTS: "You do not have permission to manage training participants",
    Capability.MANAGE_CERTIFICATES: "You do not have permission to manage certificates",
}

SIGN_IN_AGAIN = "Your session has expired. Please sign in again."


def _is_date(value: Any) -> bool:
    try:
        isoparse(str(value))
    except (ValueError, OverflowError):
        return False
    return True


def normalize_date_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Copy of ``fields`` with day-first date strings rewritten as ``YYYY-MM-DD``."""
    return {
        key: normalize_date(value) if key in DATE_FIELDS and isinstance(value, str) else value
        for key, value in fields.items()
    }


def _is_positive_int(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value > 0
    return isinstance(value, str) and value.isdigit() and int(value) > 0


def validate_fields(table: str, fields: dict[str, Any], action: str = "update") -> ValidationResult:
    """
    Check an operation's fields against the table whitelist and field formats.

    Any unknown field rejects the whole operation.

    Args:
        table: Target table
        fields: Field values to write
        action: "insert" or "update"

    Returns:
        ValidationResult naming every rejected field
    """
    whitelist = FIELD_WHITELISTS.get(table)
    if whitelist is None:
        return ValidationResult(ok=False, reason=f"Table {table} cannot be changed by the assistant")

    if not fields:
        return ValidationResult(ok=False, reason="No fields to update")

    unknown = sorted(k for k in fields if k not in whitelist)
    if unknown:
        return ValidationResult(ok=False, rejected_fields=unknown, reason=f"Invalid fields: {', '.join(unknown)}")

    if action == "insert":
        missing = [k for k in REQUIRED_ON_INSERT.get(table, ()) if not fields.get(k)]
        if missing:
            return ValidationResult(
                ok=False, rejected_fields=missing, reason=f"Missing required fields: {', '.join(missing)}"
            )

    bad_format: list[str] = []
    for key, value in fields.items():
        if value is None or value == "":
            continue
        if key == "email" and not EMAIL_PATTERN.match(str(value)):
            bad_format.append(key)
        elif key in DATE_FIELDS and not _is_date(value):
            bad_format.append(key)
        elif key in POSITIVE_INT_FIELDS and not _is_positive_int(value):
            bad_format.append(key)
    if bad_format:
        return ValidationResult(
            ok=False, rejected_fields=bad_format, reason=f"Invalid format for: {', '.join(bad_format)}"
        )

    start, end = fields.get("start_date"), fields.get("end_date")
    # Compared as calendar dates; a time of day or offset on either side is ignored
    if start and end and isoparse(str(end)).date() < isoparse(str(start)).date():
        return ValidationResult(ok=False, rejected_fields=["end_date"], reason="End date is before start date")

    return ValidationResult(ok=True)


def classify_certificate_link(existing: list[dict[str, Any]], expiry_date: str | None) -> CertificateLinkKind:
    """
    Classify a certificate against the holder's records sharing its natural key.

    Same key and same expiry is an exact duplicate; same key with another
    expiry is a renewal; no record with the key is new.
    """
    if not existing:
        return CertificateLinkKind.NEW

    wanted = normalize_date(expiry_date) if expiry_date else None
    for record in existing:
        current = record.get("expiry_date")
        current = normalize_date(str(current)[:10]) if current else None
        if current == wanted:
            return CertificateLinkKind.DUPLICATE
    return CertificateLinkKind.RENEWAL


class SecureMutationLayer:
    """Runs permission-checked, validated and audited writes through a store."""

    def __init__(self, store, audit_log, audit_failed_attempts: bool = False):
        self.store = store
        self.audit_log = audit_log
        self.audit_failed_attempts = audit_failed_attempts

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def mutate(self, operation: Operation, actor: Actor | None) -> Result[dict[str, Any]]:
        """Authenticate, authorize, validate, execute and audit one operation."""
        rejected = await self.check(operation, actor)
        if rejected is not None:
            return rejected
        return await self.execute(operation, actor)

    async def check(self, operation: Operation, actor: Actor | None) -> Result[dict[str, Any]] | None:
        """Steps 1-3. Returns a failed Result, or None when the operation may run."""
        if actor is None or not actor.session_valid:
            logger.warning(f"{operation.name} refused: no valid session")
            return Result.failure(ErrorKind.AUTHENTICATION, SIGN_IN_AGAIN)

        if not actor.has_capability(operation.required_capability):
            log_with_context(
                logger,
                logging.WARNING,
                f"{operation.name} denied: missing {operation.required_capability.value}",
                actor_id=str(actor.user_id),
            )
            await self._audit_attempt(operation, actor, "denied")
            return Result.failure(ErrorKind.PERMISSION, DENIAL_MESSAGES[operation.required_capability])

        validation = validate_fields(operation.target_table, operation.fields, operation.action)
        if not validation.ok:
            logger.info(f"{operation.name} rejected: {validation.reason}")
            await self._audit_attempt(operation, actor, "rejected")
            return Result.failure(ErrorKind.VALIDATION, validation.reason, validation.rejected_fields)

        if operation.action == "update":
            if not operation.target_id:
                return Result.failure(ErrorKind.VALIDATION, "An update needs a target record")
            if await self.store.get_record(operation.target_table, operation.target_id) is None:
                return Result.failure(ErrorKind.NOT_FOUND, f"{_entity_label(operation.target_table)} not found")

        return None

    async def execute(self, operation: Operation, actor: Actor, *tags: str) -> Result[dict[str, Any]]:
        """Steps 4-5, for an operation that already passed ``check``."""
        try:
            if operation.action == "insert":
                row = await self.store.insert(operation.target_table, operation.fields)
            else:
                row = await self.store.update(operation.target_table, operation.target_id, operation.fields)
        except Exception as e:
            logger.error(f"{operation.name} failed in store: {e}", exc_info=True)
            await self._audit_attempt(operation, actor, "failed")
            return Result.failure(ErrorKind.STORE, f"Failed to save changes: {e}")

        target_id = operation.target_id or str(row.get("id", ""))
        log_with_context(
            logger,
            logging.INFO,
            f"{operation.name} succeeded",
            actor_id=str(actor.user_id),
            table=operation.target_table,
            record_id=target_id,
        )
        await self._write_audit(
            AuditLogEntry(
                actor_id=str(actor.user_id),
                actor_email=actor.email,
                operation=operation.name,
                target_table=operation.target_table,
                target_id=target_id,
                changed_fields=operation.fields,
                outcome="success",
            )
        )
        return Result.success(row, *tags)

    async def _audit_attempt(self, operation: Operation, actor: Actor, outcome: str) -> None:
        if not self.audit_failed_attempts:
            return
        await self._write_audit(
            AuditLogEntry(
                actor_id=str(actor.user_id),
                actor_email=actor.email,
                operation=operation.name,
                target_table=operation.target_table,
                target_id=operation.target_id,
                changed_fields=operation.fields,
                outcome=outcome,
            )
        )

    async def _write_audit(self, entry: AuditLogEntry) -> None:
        # The mutation already happened; a lost audit line is logged, not rolled back
        try:
            await self.audit_log.append(entry)
        except Exception as e:
            logger.error(f"Failed to write audit entry for {entry.operation}: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Domain operations
    # ------------------------------------------------------------------

    async def update_employee(
        self, actor: Actor | None, employee_id: str, updates: dict[str, Any]
    ) -> Result[dict[str, Any]]:
        return await self.mutate(
            Operation(
                action="update",
                target_table="employees",
                target_id=employee_id,
                fields=normalize_date_fields(updates),
                required_capability=Capability.EDIT_EMPLOYEES,
                name="UPDATE_EMPLOYEE",
            ),
            actor,
        )

    async def create_training(self, actor: Actor | None, training: dict[str, Any]) -> Result[dict[str, Any]]:
        return await self.mutate(
            Operation(
                action="insert",
                target_table="trainings",
                fields=normalize_date_fields(training),
                required_capability=Capability.CREATE_TRAININGS,
                name="CREATE_TRAINING",
            ),
            actor,
        )

    async def update_training(
        self, actor: Actor | None, training_id: str, updates: dict[str, Any]
    ) -> Result[dict[str, Any]]:
        return await self.mutate(
            Operation(
                action="update",
                target_table="trainings",
                target_id=training_id,
                fields=normalize_date_fields(updates),
                required_capability=Capability.EDIT_TRAININGS,
                name="UPDATE_TRAINING",
            ),
            actor,
        )

    async def add_training_participant(
        self, actor: Actor | None, training_id: str, employee_id: str
    ) -> Result[dict[str, Any]]:
        """Register an employee for a training; refuses a second registration."""
        operation = Operation(
            action="insert",
            target_table="training_participants",
            fields={"training_id": training_id, "employee_id": employee_id, "status": "registered"},
            required_capability=Capability.MANAGE_PARTICIPANTS,
            name="ADD_PARTICIPANT",
        )
        rejected = await self.check(operation, actor)
        if rejected is not None:
            return rejected

        if await self.store.get_training(training_id) is None:
            return Result.failure(ErrorKind.NOT_FOUND, "Training not found")
        if await self.store.find_participant(training_id, employee_id) is not None:
            return Result.failure(ErrorKind.DUPLICATE, "Employee is already registered for this training")

        return await self.execute(operation, actor)

    async def link_certificate(
        self, actor: Actor | None, employee_id: str, certificate: dict[str, Any]
    ) -> Result[dict[str, Any]]:
        """
        Record a certificate for an employee.

        Records sharing the certificate number (or, without a number, the
        license type) are looked up first. An exact duplicate is refused; a
        renewal is inserted and tagged ``renewal``; anything else is tagged
        ``new``.
        """
        fields = normalize_date_fields({k: v for k, v in certificate.items() if v not in (None, "")})
        fields["employee_id"] = employee_id
        fields.setdefault("status", "active")

        operation = Operation(
            action="insert",
            target_table="employee_licenses",
            fields=fields,
            required_capability=Capability.MANAGE_CERTIFICATES,
            name="CREATE_LICENSE",
        )
        rejected = await self.check(operation, actor)
        if rejected is not None:
            return rejected

        if not fields.get("certificate_number") and not fields.get("license_id"):
            return Result.failure(
                ErrorKind.VALIDATION,
                "A certificate number or certificate type is required",
                ("certificate_number", "license_id"),
            )

        existing = await self.store.find_employee_licenses(
            employee_id,
            certificate_number=fields.get("certificate_number"),
            license_id=fields.get("license_id"),
        )
        kind = classify_certificate_link(existing, fields.get("expiry_date"))
        logger.info(f"Certificate link for employee {employee_id} classified as {kind.value}")

        if kind == CertificateLinkKind.DUPLICATE:
            return Result(
                error=MutationError(
                    ErrorKind.DUPLICATE,
                    "This certificate is already registered for this employee with the same expiry date",
                ),
                tags=(kind.value,),
            )

        if kind == CertificateLinkKind.RENEWAL:
            operation = operation.model_copy(update={"name": "RENEW_LICENSE"})
        return await self.execute(operation, actor, kind.value)


def _entity_label(table: str) -> str:
    return {
        "employees": "Employee",
        "trainings": "Training",
        "training_participants": "Participant",
        "employee_licenses": "Certificate",
    }.get(table, "Record")
