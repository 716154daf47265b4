"""Database operations for employees, courses, trainings and certificates."""

from datetime import date, timedelta
from typing import Any

from supabase import AsyncClient

from trainai.core.logging import get_logger

logger = get_logger(__name__)

EMPLOYEE_MATCH_COLUMNS = "id, name, first_name, last_name, roepnaam, email, employee_number"

EMPLOYEE_SEARCH_COLUMNS = (
    "name",
    "email",
    "employee_number",
    "department",
    "job_title",
    "first_name",
    "last_name",
    "roepnaam",
    "city",
)

# Characters with meaning inside a PostgREST or=() filter
_FILTER_UNSAFE = str.maketrans({c: " " for c in ",()%*\\"})


def _sanitize_term(term: str) -> str:
    return " ".join(term.translate(_FILTER_UNSAFE).split())


class TrainingStore:
    """Reads and writes against the training platform tables.

    Every method is a single PostgREST round trip; row-level security and the
    schema itself are owned by the database.
    """

    def __init__(self, client: AsyncClient):
        self._client = client

    # ------------------------------------------------------------------
    # Context summaries
    # ------------------------------------------------------------------

    async def list_active_employees(self) -> list[dict[str, Any]]:
        """List active employees, newest hires first."""
        response = await (
            self._client.table("employees")
            .select("id, name, employee_number, department, job_title, hire_date, status")
            .eq("status", "active")
            .order("hire_date", desc=True)
            .execute()
        )
        return response.data or []

    async def list_active_courses(self) -> list[dict[str, Any]]:
        """List active courses."""
        response = await (
            self._client.table("courses")
            .select("id, title, description, duration_hours, max_participants, code95_points")
            .eq("is_active", True)
            .order("title")
            .execute()
        )
        return response.data or []

    async def list_upcoming_trainings(self) -> list[dict[str, Any]]:
        """List trainings starting today or later, with course title and participant count."""
        response = await (
            self._client.table("trainings")
            .select(
                "id, start_date, end_date, instructor, location, status, max_participants, "
                "courses(title), training_participants(count)"
            )
            .gte("start_date", date.today().isoformat())
            .order("start_date")
            .execute()
        )

        trainings = []
        for row in response.data or []:
            participants = row.get("training_participants") or []
            trainings.append(
                {
                    "id": row["id"],
                    "course_title": (row.get("courses") or {}).get("title", "Unknown course"),
                    "start_date": row.get("start_date"),
                    "end_date": row.get("end_date"),
                    "instructor": row.get("instructor"),
                    "location": row.get("location"),
                    "status": row.get("status"),
                    "max_participants": row.get("max_participants"),
                    "participant_count": participants[0].get("count", 0) if participants else 0,
                }
            )
        return trainings

    async def list_expiring_certificates(self, within_days: int) -> list[dict[str, Any]]:
        """List certificates expiring between today and ``within_days`` from now."""
        today = date.today()
        response = await (
            self._client.table("employee_licenses")
            .select("id, expiry_date, employees(name), licenses(name)")
            .gte("expiry_date", today.isoformat())
            .lte("expiry_date", (today + timedelta(days=within_days)).isoformat())
            .order("expiry_date")
            .execute()
        )

        certificates = []
        for row in response.data or []:
            expiry = date.fromisoformat(row["expiry_date"][:10])
            certificates.append(
                {
                    "employee_name": (row.get("employees") or {}).get("name", "Unknown"),
                    "license_type": (row.get("licenses") or {}).get("name", "Unknown"),
                    "expiry_date": expiry.isoformat(),
                    "days_until_expiry": (expiry - today).days,
                }
            )
        return certificates

    # ------------------------------------------------------------------
    # Employees
    # ------------------------------------------------------------------

    async def search_employees(
        self, query: str, filters: dict[str, Any] | None = None, limit: int = 10
    ) -> list[dict[str, Any]]:
        """Case-insensitive substring search across employee name/contact columns."""
        filters = filters or {}
        term = _sanitize_term(query)

        builder = self._client.table("employees").select("*")
        if term:
            builder = builder.or_(",".join(f"{col}.ilike.%{term}%" for col in EMPLOYEE_SEARCH_COLUMNS))
        if filters.get("department"):
            builder = builder.ilike("department", f"%{_sanitize_term(filters['department'])}%")
        if filters.get("status"):
            builder = builder.eq("status", filters["status"])
        if filters.get("hireDateAfter"):
            builder = builder.gte("hire_date", filters["hireDateAfter"])
        if filters.get("hireDateBefore"):
            builder = builder.lte("hire_date", filters["hireDateBefore"])

        response = await builder.limit(limit).execute()
        return response.data or []

    async def list_employees_for_matching(self) -> list[dict[str, Any]]:
        """All employees with the columns the entity resolver compares against."""
        response = await self._client.table("employees").select(EMPLOYEE_MATCH_COLUMNS).execute()
        return response.data or []

    async def get_employee(self, employee_id: str) -> dict[str, Any] | None:
        response = await (
            self._client.table("employees").select("*").eq("id", employee_id).limit(1).execute()
        )
        return response.data[0] if response.data else None

    # ------------------------------------------------------------------
    # Courses / trainings
    # ------------------------------------------------------------------

    async def get_course(self, course_id: str) -> dict[str, Any] | None:
        response = await (
            self._client.table("courses").select("id, title").eq("id", course_id).limit(1).execute()
        )
        return response.data[0] if response.data else None

    async def list_courses_for_matching(self) -> list[dict[str, Any]]:
        response = await self._client.table("courses").select("id, title, description").execute()
        return response.data or []

    async def get_training(self, training_id: str) -> dict[str, Any] | None:
        response = await (
            self._client.table("trainings")
            .select("id, course_id, start_date, status, courses(title)")
            .eq("id", training_id)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    async def find_participant(self, training_id: str, employee_id: str) -> dict[str, Any] | None:
        response = await (
            self._client.table("training_participants")
            .select("id, status")
            .eq("training_id", training_id)
            .eq("employee_id", employee_id)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    # ------------------------------------------------------------------
    # Certificates
    # ------------------------------------------------------------------

    async def list_licenses(self) -> list[dict[str, Any]]:
        """Certificate/license type catalogue used for type matching."""
        response = await self._client.table("licenses").select("id, name, category, description").execute()
        return response.data or []

    async def find_employee_licenses(
        self,
        employee_id: str,
        certificate_number: str | None = None,
        license_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """Existing certificate records of one holder sharing a natural key."""
        builder = (
            self._client.table("employee_licenses")
            .select("id, license_id, certificate_number, issue_date, expiry_date, status")
            .eq("employee_id", employee_id)
        )
        if certificate_number:
            builder = builder.eq("certificate_number", certificate_number)
        elif license_id:
            builder = builder.eq("license_id", license_id)
        response = await builder.execute()
        return response.data or []

    # ------------------------------------------------------------------
    # Generic writes (used by the secure mutation layer)
    # ------------------------------------------------------------------

    async def insert(self, table: str, fields: dict[str, Any]) -> dict[str, Any]:
        response = await self._client.table(table).insert(fields).execute()
        if not response.data:
            raise ValueError(f"Insert into {table} returned no row")
        return response.data[0]

    async def update(self, table: str, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        response = await self._client.table(table).update(fields).eq("id", record_id).execute()
        if not response.data:
            raise ValueError(f"Update of {table}/{record_id} matched no row")
        return response.data[0]

    async def get_record(self, table: str, record_id: str) -> dict[str, Any] | None:
        response = await self._client.table(table).select("*").eq("id", record_id).limit(1).execute()
        return response.data[0] if response.data else None
