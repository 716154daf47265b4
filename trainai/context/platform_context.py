"""Bounded summary of live platform data for the assistant prompt.

The four reads run concurrently. A failed read leaves its section empty and
is logged; it never aborts the whole summary.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from trainai.core.config import Settings
from trainai.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PlatformSnapshot:
    """Rows fetched for one assistant turn."""

    employees: list[dict[str, Any]] = field(default_factory=list)
    courses: list[dict[str, Any]] = field(default_factory=list)
    trainings: list[dict[str, Any]] = field(default_factory=list)
    expiring_certificates: list[dict[str, Any]] = field(default_factory=list)
    failed_sections: list[str] = field(default_factory=list)

    @property
    def recent_activity(self) -> list[dict[str, str]]:
        """Trainings that have already started, newest first."""
        today = date.today().isoformat()
        started = [t for t in self.trainings if t.get("start_date") and str(t["start_date"])[:10] <= today]
        activity = []
        for training in started[:5]:
            verb = "completed" if training.get("status") == "completed" else "started"
            activity.append(
                {
                    "description": f'Training "{training.get("course_title", "Unknown")}" {verb}',
                    "timestamp": str(training["start_date"]),
                }
            )
        return activity


def _more(total: int, shown: int, noun: str) -> list[str]:
    return [f"... and {total - shown} more {noun}"] if total > shown else []


class PlatformContextAggregator:
    """Fetches and formats the platform summary embedded in the system prompt."""

    def __init__(self, store, settings: Settings):
        self.store = store
        self.employee_limit = settings.CONTEXT_EMPLOYEE_LIMIT
        self.course_limit = settings.CONTEXT_COURSE_LIMIT
        self.training_limit = settings.CONTEXT_TRAINING_LIMIT
        self.certificate_limit = settings.CONTEXT_CERTIFICATE_LIMIT
        self.expiry_window_days = settings.EXPIRING_CERTIFICATE_WINDOW_DAYS

    async def build(self) -> PlatformSnapshot:
        sections = ("employees", "courses", "trainings", "expiring_certificates")
        results = await asyncio.gather(
            self.store.list_active_employees(),
            self.store.list_active_courses(),
            self.store.list_upcoming_trainings(),
            self.store.list_expiring_certificates(self.expiry_window_days),
            return_exceptions=True,
        )

        snapshot = PlatformSnapshot()
        for name, result in zip(sections, results):
            if isinstance(result, BaseException):
                logger.warning(f"Platform context section '{name}' unavailable: {result}")
                snapshot.failed_sections.append(name)
                continue
            setattr(snapshot, name, list(result or []))

        logger.debug(
            f"Platform context: employees={len(snapshot.employees)}, courses={len(snapshot.courses)}, "
            f"trainings={len(snapshot.trainings)}, expiring={len(snapshot.expiring_certificates)}"
        )
        return snapshot

    def format_for_prompt(self, snapshot: PlatformSnapshot) -> str:
        """Render the top rows of each category as prompt text."""
        lines: list[str] = []

        employees = snapshot.employees
        lines.append(f"**Current Employees ({len(employees)} active):**")
        for emp in employees[: self.employee_limit]:
            hired = f" - Hired: {emp['hire_date']}" if emp.get("hire_date") else ""
            lines.append(
                f"- {emp.get('name')} ({emp.get('employee_number') or 'No #'}) - "
                f"{emp.get('department') or 'No dept'} - {emp.get('job_title') or 'No title'}{hired}"
            )
        lines.extend(_more(len(employees), self.employee_limit, "employees"))

        courses = snapshot.courses
        lines.append("")
        lines.append(f"**Available Courses ({len(courses)} active):**")
        for course in courses[: self.course_limit]:
            points = f" - {course['code95_points']} Code 95 points" if course.get("code95_points") else ""
            lines.append(f'- "{course.get("title")}" ({course.get("duration_hours") or "Unknown"} hours){points}')
        lines.extend(_more(len(courses), self.course_limit, "courses"))

        trainings = snapshot.trainings
        lines.append("")
        lines.append(f"**Upcoming Trainings ({len(trainings)}):**")
        for training in trainings[: self.training_limit]:
            lines.append(
                f'- "{training.get("course_title")}" on {training.get("start_date")} '
                f'({training.get("participant_count", 0)} participants) - {training.get("status")}'
            )
        lines.extend(_more(len(trainings), self.training_limit, "trainings"))

        certificates = snapshot.expiring_certificates
        lines.append("")
        lines.append(f"**Expiring Certificates ({len(certificates)}):**")
        for cert in certificates[: self.certificate_limit]:
            lines.append(
                f"- {cert.get('employee_name')}: {cert.get('license_type')} expires in "
                f"{cert.get('days_until_expiry')} days ({cert.get('expiry_date')})"
            )
        lines.extend(_more(len(certificates), self.certificate_limit, "expiring certificates"))

        activity = snapshot.recent_activity
        if activity:
            lines.append("")
            lines.append("**Recent Activity:**")
            for item in activity[:3]:
                lines.append(f"- {item['description']} ({item['timestamp']})")

        return "\n".join(lines)
