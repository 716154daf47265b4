"""In-memory stand-ins for the Supabase stores and the model client."""

from copy import deepcopy
from typing import Any
from uuid import uuid4

from trainai.core.llm import ChatMessage, ChatToolCall, FunctionCall
from trainai.core.results import RetryExhaustedError

EMP_JAN = "11111111-1111-1111-1111-111111111111"
EMP_AHMED = "22222222-2222-2222-2222-222222222222"
EMP_PIET = "33333333-3333-3333-3333-333333333333"

COURSE_VCA = "aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa"
COURSE_FORKLIFT = "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb"

TRAINING_VCA = "cccccccc-cccc-cccc-cccc-cccccccccccc"

LICENSE_VCA = "dddddddd-dddd-dddd-dddd-dddddddddddd"
LICENSE_CODE95 = "eeeeeeee-eeee-eeee-eeee-eeeeeeeeeeee"

EMPLOYEES = [
    {
        "id": EMP_JAN,
        "name": "Jan Jansen",
        "first_name": "Jan",
        "last_name": "Jansen",
        "email": "jan.jansen@example.com",
        "employee_number": "E001",
        "department": "Logistics",
        "job_title": "Driver",
        "status": "active",
    },
    {
        "id": EMP_AHMED,
        "name": "Ahmed Yilmaz",
        "first_name": "Ahmed",
        "last_name": "Yilmaz",
        "email": "ahmed.yilmaz@example.com",
        "employee_number": "E002",
        "department": "Warehouse",
        "job_title": "Forklift operator",
        "status": "active",
    },
    {
        "id": EMP_PIET,
        "name": "Piet de Vries",
        "first_name": "Piet",
        "tussenvoegsel": "de",
        "last_name": "Vries",
        "email": "piet@example.com",
        "employee_number": "E003",
        "department": "Logistics",
        "job_title": "Planner",
        "status": "active",
    },
]

COURSES = [
    {"id": COURSE_VCA, "title": "VCA Basis", "description": "Basic safety certificate", "status": "active"},
    {"id": COURSE_FORKLIFT, "title": "Forklift Operator", "description": None, "status": "active"},
]

TRAININGS = [
    {
        "id": TRAINING_VCA,
        "course_id": COURSE_VCA,
        "course_title": "VCA Basis",
        "start_date": "2026-11-02",
        "status": "scheduled",
        "participant_count": 4,
    },
]

LICENSES = [
    {"id": LICENSE_VCA, "name": "VCA Basis", "category": "Safety", "description": None},
    {"id": LICENSE_CODE95, "name": "Code 95", "category": "Driving", "description": "Professional driver competence"},
]


class FakeTrainingStore:
    """In-memory implementation of the ``TrainingStore`` interface."""

    def __init__(self, employees=(), courses=(), trainings=(), licenses=()):
        self.tables: dict[str, dict[str, dict[str, Any]]] = {
            "employees": {e["id"]: dict(e) for e in employees},
            "courses": {c["id"]: dict(c) for c in courses},
            "trainings": {t["id"]: dict(t) for t in trainings},
            "training_participants": {},
            "employee_licenses": {},
        }
        self.licenses = [dict(lic) for lic in licenses]
        self.expiring: list[dict[str, Any]] = []
        self.inserts: list[tuple[str, dict[str, Any]]] = []
        self.updates: list[tuple[str, str, dict[str, Any]]] = []
        self.search_calls: list[tuple[str, dict[str, Any]]] = []
        self.fail_writes = False
        self.fail_sections: set[str] = set()

    # Context reads

    async def list_active_employees(self):
        self._maybe_fail("employees")
        return [e for e in self.tables["employees"].values() if e.get("status") == "active"]

    async def list_active_courses(self):
        self._maybe_fail("courses")
        return [c for c in self.tables["courses"].values() if c.get("status") == "active"]

    async def list_upcoming_trainings(self):
        self._maybe_fail("trainings")
        return list(self.tables["trainings"].values())

    async def list_expiring_certificates(self, within_days: int):
        self._maybe_fail("expiring_certificates")
        return [c for c in self.expiring if c["days_until_expiry"] <= within_days]

    def _maybe_fail(self, section: str) -> None:
        if section in self.fail_sections:
            raise ConnectionError(f"{section} query failed")

    # Lookups

    async def search_employees(self, query: str, filters: dict[str, Any] | None = None, limit: int = 10):
        filters = filters or {}
        self.search_calls.append((query, filters))
        needle = query.lower()
        results = []
        for emp in self.tables["employees"].values():
            haystack = " ".join(str(emp.get(k) or "") for k in ("name", "email", "employee_number")).lower()
            if needle and needle not in haystack:
                continue
            if filters.get("department") and filters["department"].lower() not in (emp.get("department") or "").lower():
                continue
            results.append(emp)
        return results[:limit]

    async def list_employees_for_matching(self):
        return list(self.tables["employees"].values())

    async def get_employee(self, employee_id: str):
        return self.tables["employees"].get(employee_id)

    async def get_course(self, course_id: str):
        return self.tables["courses"].get(course_id)

    async def list_courses_for_matching(self):
        return list(self.tables["courses"].values())

    async def get_training(self, training_id: str):
        return self.tables["trainings"].get(training_id)

    async def find_participant(self, training_id: str, employee_id: str):
        for row in self.tables["training_participants"].values():
            if row["training_id"] == training_id and row["employee_id"] == employee_id:
                return row
        return None

    async def list_licenses(self):
        return list(self.licenses)

    async def find_employee_licenses(self, employee_id, certificate_number=None, license_id=None):
        rows = [r for r in self.tables["employee_licenses"].values() if r["employee_id"] == employee_id]
        if certificate_number:
            return [r for r in rows if r.get("certificate_number") == certificate_number]
        if license_id:
            return [r for r in rows if r.get("license_id") == license_id]
        return rows

    # Writes

    async def insert(self, table: str, fields: dict[str, Any]):
        if self.fail_writes:
            raise ConnectionError("database unavailable")
        row = {"id": str(uuid4()), **deepcopy(fields)}
        self.tables[table][row["id"]] = row
        self.inserts.append((table, deepcopy(fields)))
        return row

    async def update(self, table: str, record_id: str, fields: dict[str, Any]):
        if self.fail_writes:
            raise ConnectionError("database unavailable")
        if record_id not in self.tables[table]:
            raise ValueError(f"Update of {table}/{record_id} matched no row")
        self.tables[table][record_id].update(deepcopy(fields))
        self.updates.append((table, record_id, deepcopy(fields)))
        return self.tables[table][record_id]

    async def get_record(self, table: str, record_id: str):
        return self.tables.get(table, {}).get(record_id)

    @property
    def writes(self) -> int:
        return len(self.inserts) + len(self.updates)


def sample_store() -> FakeTrainingStore:
    return FakeTrainingStore(EMPLOYEES, COURSES, TRAININGS, LICENSES)


class FakeAuditLog:
    """Collects audit entries; can be told to fail."""

    def __init__(self):
        self.entries = []
        self.fail = False

    async def append(self, entry) -> None:
        if self.fail:
            raise ConnectionError("audit table unavailable")
        self.entries.append(entry)


class FakeDocumentStore:
    """In-memory ``certificate_documents`` table plus storage bucket."""

    def __init__(self):
        self.rows: dict[str, dict[str, Any]] = {}
        self.files: dict[str, bytes] = {}
        self.status_history: list[tuple[str, str]] = []

    def add(self, document_id: str, file_name: str, mime_type: str | None, content: bytes | None) -> None:
        path = f"certificates/{document_id}/{file_name}"
        self.rows[document_id] = {
            "id": document_id,
            "file_name": file_name,
            "file_path": path,
            "mime_type": mime_type,
            "processing_status": "pending",
        }
        if content is not None:
            self.files[path] = content

    async def get(self, document_id: str):
        row = self.rows.get(document_id)
        return dict(row) if row else None

    async def download(self, file_path: str) -> bytes:
        content = self.files.get(file_path)
        if not content:
            raise ValueError(f"Failed to download file from storage: {file_path}")
        return content

    async def set_status(self, document_id: str, status: str) -> None:
        await self.update(document_id, {"processing_status": status})

    async def update(self, document_id: str, fields: dict[str, Any]) -> None:
        if "processing_status" in fields:
            self.status_history.append((document_id, fields["processing_status"]))
        self.rows[document_id].update(deepcopy(fields))


def tool_call(name: str, arguments: str, call_id: str = "call_1") -> ChatToolCall:
    return ChatToolCall(id=call_id, function=FunctionCall(name=name, arguments=arguments))


class ScriptedLLM:
    """Model client double that replays queued replies and records prompts.

    Queue entries are strings (text replies), ``ChatMessage`` objects
    (chat replies) or exceptions, which are raised.
    """

    def __init__(self):
        self.chat_replies: list[Any] = []
        self.text_replies: list[Any] = []
        self.vision_replies: list[Any] = []
        self.chat_calls: list[dict[str, Any]] = []
        self.text_prompts: list[str] = []
        self.vision_calls: list[tuple[str, str]] = []

    @staticmethod
    def _next(queue: list[Any], default: Any) -> Any:
        reply = queue.pop(0) if queue else default
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def chat(self, messages, **kwargs) -> ChatMessage:
        self.chat_calls.append({"messages": messages, **kwargs})
        return self._next(self.chat_replies, ChatMessage(content="OK"))

    async def complete_text(self, prompt: str) -> str:
        self.text_prompts.append(prompt)
        return self._next(self.text_replies, "{}")

    async def complete_vision(self, prompt: str, image_b64: str, mime_type: str = "image/jpeg") -> str:
        self.vision_calls.append((mime_type, image_b64))
        return self._next(self.vision_replies, "")


def rate_limited() -> RetryExhaustedError:
    return RetryExhaustedError("rate limited", attempts=5, last_status=429)
