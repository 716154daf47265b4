"""Typed tool arguments.

Each tool name maps to one Pydantic model. ``decode_tool_call`` turns the
model's raw JSON into that model, rejecting unknown tool names before any
handler runs.
"""

import json
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from trainai.core.llm import ChatToolCall


class _ToolArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UpdateEmployeeByNameArgs(_ToolArgs):
    search_term: str = Field(..., alias="searchTerm", min_length=1)
    # Passed through untouched; the mutation layer owns the field whitelist
    updates: dict[str, Any]


class NavigateToPageArgs(_ToolArgs):
    path: str = Field(..., min_length=1)
    reason: str = ""


class SearchFilters(_ToolArgs):
    department: str | None = None
    status: str | None = None
    hire_date_after: str | None = Field(default=None, alias="hireDateAfter")
    hire_date_before: str | None = Field(default=None, alias="hireDateBefore")


class SearchEmployeesArgs(_ToolArgs):
    query: str
    filters: SearchFilters | None = None


class NavigateToEmployeeArgs(_ToolArgs):
    search_term: str = Field(..., alias="searchTerm", min_length=1)


class CreateTrainingArgs(_ToolArgs):
    course_id: str = Field(..., min_length=1, description="Course id or title")
    start_date: str = Field(..., min_length=1)
    end_date: str | None = None
    instructor: str | None = None
    location: str | None = None
    max_participants: int | None = None
    notes: str | None = None


class AddTrainingParticipantArgs(_ToolArgs):
    training_id: str = Field(..., alias="trainingId", min_length=1)
    employee_id: str = Field(..., alias="employeeId", min_length=1, description="Employee id or name")


class CertificateData(_ToolArgs):
    license_type: str = Field(..., min_length=1)
    certificate_number: str | None = None
    issue_date: str | None = None
    expiry_date: str | None = None
    issuing_authority: str | None = None
    status: str | None = None


class UpdateEmployeeCertificateArgs(_ToolArgs):
    employee_id: str = Field(..., alias="employeeId", min_length=1, description="Employee id or name")
    certificate_data: CertificateData = Field(..., alias="certificateData")


TOOL_ARGUMENT_MODELS: dict[str, type[_ToolArgs]] = {
    "update_employee_by_name": UpdateEmployeeByNameArgs,
    "navigate_to_page": NavigateToPageArgs,
    "search_employees": SearchEmployeesArgs,
    "navigate_to_employee": NavigateToEmployeeArgs,
    "create_training_secure": CreateTrainingArgs,
    "add_training_participant": AddTrainingParticipantArgs,
    "update_employee_certificate": UpdateEmployeeCertificateArgs,
}


class UnknownToolError(Exception):
    """The model called a tool that is not in the registry."""


class ToolArgumentsError(Exception):
    """The tool's arguments were not valid JSON or did not match its schema."""


@dataclass(frozen=True)
class DecodedToolCall:
    """A registry tool call with validated arguments."""

    call_id: str
    name: str
    arguments: _ToolArgs


def decode_tool_call(call: ChatToolCall) -> DecodedToolCall:
    """
    Decode a raw tool call into its typed argument model.

    Raises:
        UnknownToolError: If the tool name is not registered
        ToolArgumentsError: If the arguments are not a valid JSON object for the tool
    """
    name = call.function.name
    model = TOOL_ARGUMENT_MODELS.get(name)
    if model is None:
        raise UnknownToolError(name)

    try:
        raw = json.loads(call.function.arguments or "{}")
    except json.JSONDecodeError as e:
        raise ToolArgumentsError(f"{name}: arguments are not valid JSON ({e})") from e
    if not isinstance(raw, dict):
        raise ToolArgumentsError(f"{name}: arguments must be a JSON object")

    try:
        arguments = model.model_validate(raw)
    except ValidationError as e:
        raise ToolArgumentsError(f"{name}: {e.error_count()} invalid argument(s)") from e

    return DecodedToolCall(call_id=call.id, name=name, arguments=arguments)
