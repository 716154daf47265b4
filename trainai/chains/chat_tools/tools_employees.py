"""Employee tool implementations: update by name, search, navigate to profile."""

from typing import Any

from trainai.chains.chat_tools.arguments import (
    NavigateToEmployeeArgs,
    SearchEmployeesArgs,
    UpdateEmployeeByNameArgs,
)
from trainai.chains.chat_tools.base import (
    ToolServices,
    ToolTurn,
    clarification_response,
    error_response,
    resolve_employee,
)
from trainai.core.logging import get_logger
from trainai.core.schemas_ai import AIResponse, navigate_action
from trainai.core.secure_mutations import normalize_date_fields

logger = get_logger(__name__)

PARTICIPANTS_PATH = "/participants"


def _full_name(emp: dict[str, Any]) -> str:
    parts = [emp.get("first_name"), emp.get("tussenvoegsel"), emp.get("last_name")]
    joined = " ".join(p for p in parts if p)
    return joined or emp.get("name") or "Unknown"


def _format_employee(emp: dict[str, Any]) -> str:
    details = [f"**{_full_name(emp)}**"]
    if emp.get("roepnaam"):
        details.append(f"(Known as: {emp['roepnaam']})")
    details.extend(
        [
            f"Employee #: {emp.get('employee_number') or 'Not assigned'}",
            f"Department: {emp.get('department') or 'Not specified'}",
            f"Position: {emp.get('job_title') or 'Not specified'}",
            f"Email: {emp.get('email') or 'Not provided'}",
        ]
    )
    optional = (
        ("phone", "Phone"),
        ("mobile_phone", "Mobile"),
        ("hire_date", "Hired"),
        ("date_of_birth", "Date of Birth"),
        ("address", "Address"),
        ("city", "City"),
        ("country", "Country"),
        ("nationality", "Nationality"),
        ("notes", "Notes"),
    )
    details.extend(f"{label}: {emp[key]}" for key, label in optional if emp.get(key))
    return "\n".join(details)


def _describe_updates(updates: dict[str, Any]) -> str:
    return ", ".join(f'{key.replace("_", " ")} to "{value}"' for key, value in updates.items())


async def _update_employee_by_name(
    tools: ToolServices, args: UpdateEmployeeByNameArgs, turn: ToolTurn
) -> AIResponse:
    """Resolve the employee by name/email/number, then run a secure update."""
    resolution = await resolve_employee(tools, args.search_term)
    if resolution.match is None:
        return clarification_response(
            resolution, "employee", ["Try different search term", "Check spelling", "Search all employees"]
        )

    employee = resolution.match
    updates = normalize_date_fields(args.updates)
    result = await tools.mutations.update_employee(turn.actor, employee.entity_id, updates)
    if not result.ok:
        return error_response(result.error, f"{employee.entity_name}'s information")

    return AIResponse(
        content=(
            f"Done! I've updated {employee.entity_name}'s {_describe_updates(updates)}. "
            "The changes have been saved."
        ),
        suggestions=["Show me their updated profile", "Make another change", "Update someone else"],
    )


async def _search_employees(tools: ToolServices, args: SearchEmployeesArgs, turn: ToolTurn) -> AIResponse:
    filters = args.filters.model_dump(by_alias=True, exclude_none=True) if args.filters else {}
    results = await tools.store.search_employees(args.query, filters)

    if not results:
        return AIResponse(
            content=f'I couldn\'t find any employees matching "{args.query}". Please try a different search term.',
            suggestions=["Search all employees", "Try different spelling", "Search by department"],
        )

    first = results[0]
    first_name = first.get("first_name") or first.get("name") or "the employee"
    details = "\n\n---\n\n".join(_format_employee(emp) for emp in results)

    return AIResponse(
        content=f"Here's the detailed information I found:\n\n{details}",
        actions=[navigate_action(f"{PARTICIPANTS_PATH}/{first['id']}", f"Navigate to {first_name}'s profile")],
        suggestions=[
            f"View {first_name}'s profile",
            "Show training history",
            "View certificates",
            "Update information",
            "Search for others",
        ],
    )


async def _navigate_to_employee(tools: ToolServices, args: NavigateToEmployeeArgs, turn: ToolTurn) -> AIResponse:
    resolution = await resolve_employee(tools, args.search_term)
    if resolution.match is None:
        response = clarification_response(
            resolution, "employee", ["Search all employees", "Try different spelling", "Browse participant list"]
        )
        response.actions = [navigate_action(PARTICIPANTS_PATH, "Go to participants page to browse all employees")]
        return response

    employee = resolution.match
    return AIResponse(
        content=f"I found {employee.entity_name}! I'll take you to their profile page now.",
        actions=[
            navigate_action(f"{PARTICIPANTS_PATH}/{employee.entity_id}", f"Navigate to {employee.entity_name}'s profile")
        ],
        suggestions=["View training history", "Check certificates", "Update information", "Search for others"],
    )
