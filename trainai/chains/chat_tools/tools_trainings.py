"""Training tool implementations: create training, add participant."""

from trainai.chains.chat_tools.arguments import AddTrainingParticipantArgs, CreateTrainingArgs
from trainai.chains.chat_tools.base import (
    ToolServices,
    ToolTurn,
    clarification_response,
    error_response,
    resolve_course,
    resolve_employee,
)
from trainai.core.logging import get_logger
from trainai.core.schemas_ai import AIResponse

logger = get_logger(__name__)


async def _create_training_secure(tools: ToolServices, args: CreateTrainingArgs, turn: ToolTurn) -> AIResponse:
    """Resolve the course (id or title), then create the training through the mutation layer."""
    resolution = await resolve_course(tools, args.course_id)
    if resolution.match is None:
        return clarification_response(resolution, "course", ["Show me available courses", "Check course name"])

    course = resolution.match
    training = args.model_dump(exclude_none=True)
    training["course_id"] = course.entity_id

    result = await tools.mutations.create_training(turn.actor, training)
    if not result.ok:
        return error_response(result.error, "the training")

    instructor = f" with instructor {args.instructor}" if args.instructor else ""
    return AIResponse(
        content=(
            f'Great! I\'ve created the "{course.entity_name}" training{instructor}. '
            f"It's scheduled for {result.value.get('start_date', args.start_date)}."
        ),
        suggestions=["Add participants", "View training details", "Create another training"],
    )


async def _add_training_participant(
    tools: ToolServices, args: AddTrainingParticipantArgs, turn: ToolTurn
) -> AIResponse:
    resolution = await resolve_employee(tools, args.employee_id)
    if resolution.match is None:
        return clarification_response(resolution, "employee", ["Check employee name", "Search all employees"])

    employee = resolution.match
    result = await tools.mutations.add_training_participant(turn.actor, args.training_id, employee.entity_id)
    if not result.ok:
        return error_response(result.error, "the participant")

    return AIResponse(
        content=f"Perfect! I've added {employee.entity_name} to the training. They're now enrolled.",
        suggestions=["View training roster", "Add another participant", "Check training details"],
    )
