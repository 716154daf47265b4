"""Tests for assistant tool decoding, handlers and dispatch.

Handlers run against the in-memory store with the real resolver and the
real secure mutation layer.
"""

import json

import pytest

from tests.fakes.fake_store import (
    COURSE_VCA,
    EMP_AHMED,
    EMP_JAN,
    LICENSE_VCA,
    TRAINING_VCA,
    tool_call,
)
from trainai.chains.chat_tools import (
    HANDLERS,
    MUTATING_TOOLS,
    TOOL_NAMES,
    ToolArgumentsError,
    ToolDispatcher,
    ToolServices,
    ToolTurn,
    UnknownToolError,
    decode_tool_call,
    get_tool_definitions,
)
from trainai.chains.chat_tools.arguments import CreateTrainingArgs


@pytest.fixture
def dispatcher(store, resolver, mutations) -> ToolDispatcher:
    return ToolDispatcher(ToolServices(store=store, resolver=resolver, mutations=mutations))


async def _run(dispatcher, actor, name: str, arguments: dict, assistant_content: str | None = None):
    decoded = decode_tool_call(tool_call(name, json.dumps(arguments)))
    return await dispatcher.dispatch(decoded, ToolTurn(actor=actor, assistant_content=assistant_content))


class TestRegistry:
    def test_seven_tools(self):
        assert TOOL_NAMES == {
            "update_employee_by_name",
            "navigate_to_page",
            "search_employees",
            "navigate_to_employee",
            "create_training_secure",
            "add_training_participant",
            "update_employee_certificate",
        }
        assert len(get_tool_definitions()) == 7

    def test_every_tool_has_a_handler(self):
        assert set(HANDLERS) == TOOL_NAMES
        assert MUTATING_TOOLS <= TOOL_NAMES
        assert "navigate_to_page" not in MUTATING_TOOLS

    def test_definitions_are_openai_function_tools(self):
        for tool in get_tool_definitions():
            assert tool["type"] == "function"
            assert tool["function"]["parameters"]["type"] == "object"


class TestDecodeToolCall:
    def test_aliases_are_accepted(self):
        decoded = decode_tool_call(
            tool_call("add_training_participant", '{"trainingId": "t1", "employeeId": "Jan"}')
        )
        assert decoded.arguments.training_id == "t1"
        assert decoded.arguments.employee_id == "Jan"

    def test_unknown_tool(self):
        with pytest.raises(UnknownToolError):
            decode_tool_call(tool_call("delete_everything", "{}"))

    def test_invalid_json(self):
        with pytest.raises(ToolArgumentsError):
            decode_tool_call(tool_call("navigate_to_page", '{"path": '))

    def test_non_object_arguments(self):
        with pytest.raises(ToolArgumentsError):
            decode_tool_call(tool_call("navigate_to_page", '["/dashboard"]'))

    def test_schema_mismatch(self):
        with pytest.raises(ToolArgumentsError):
            decode_tool_call(tool_call("create_training_secure", '{"course_id": "VCA"}'))

    def test_wrong_type(self):
        with pytest.raises(ToolArgumentsError):
            decode_tool_call(
                tool_call(
                    "create_training_secure",
                    '{"course_id": "VCA", "start_date": "2026-12-01", "max_participants": "lots"}',
                )
            )

    def test_extra_arguments_are_ignored(self):
        decoded = decode_tool_call(
            tool_call("create_training_secure", '{"course_id": "VCA", "start_date": "2026-12-01", "color": "red"}')
        )
        assert isinstance(decoded.arguments, CreateTrainingArgs)


class TestNavigation:
    @pytest.mark.asyncio
    async def test_navigate_to_page(self, dispatcher, planner):
        response = await _run(dispatcher, planner, "navigate_to_page", {"path": "certificates", "reason": "certificates"})

        assert response.content == "I'll take you to certificates."
        assert response.actions[0].parameters == {"path": "/certificates"}
        assert response.actions[0].type == "navigate"

    @pytest.mark.asyncio
    async def test_navigate_keeps_model_text(self, dispatcher, planner):
        response = await _run(
            dispatcher, planner, "navigate_to_page", {"path": "/dashboard"}, assistant_content="Opening the dashboard."
        )
        assert response.content == "Opening the dashboard."


class TestEmployeeTools:
    @pytest.mark.asyncio
    async def test_update_by_name(self, dispatcher, planner, store, audit_log):
        response = await _run(
            dispatcher, planner, "update_employee_by_name", {"searchTerm": "Jan Jansen", "updates": {"roepnaam": "Janneman"}}
        )

        assert response.content == (
            "Done! I've updated Jan Jansen's roepnaam to \"Janneman\". The changes have been saved."
        )
        assert store.tables["employees"][EMP_JAN]["roepnaam"] == "Janneman"
        assert len(audit_log.entries) == 1

    @pytest.mark.asyncio
    async def test_update_reads_day_first_birth_date(self, dispatcher, planner, store):
        response = await _run(
            dispatcher,
            planner,
            "update_employee_by_name",
            {"searchTerm": "Jan Jansen", "updates": {"date_of_birth": "18-06-1990"}},
        )

        assert response.content == (
            "Done! I've updated Jan Jansen's date of birth to \"1990-06-18\". The changes have been saved."
        )
        assert store.updates == [("employees", EMP_JAN, {"date_of_birth": "1990-06-18"})]

    @pytest.mark.asyncio
    async def test_update_rejects_impossible_day_first_date(self, dispatcher, planner, store):
        response = await _run(
            dispatcher,
            planner,
            "update_employee_by_name",
            {"searchTerm": "Jan Jansen", "updates": {"date_of_birth": "31-02-1990"}},
        )

        assert "date_of_birth" in response.content
        assert store.writes == 0

    @pytest.mark.asyncio
    async def test_update_unknown_employee_asks_for_clarification(self, dispatcher, planner, store):
        response = await _run(
            dispatcher, planner, "update_employee_by_name", {"searchTerm": "Maria Gonzales", "updates": {"city": "Ede"}}
        )

        assert response.content.startswith('I couldn\'t find an employee matching "Maria Gonzales"')
        assert store.writes == 0

    @pytest.mark.asyncio
    async def test_update_rejects_non_whitelisted_field(self, dispatcher, planner, store):
        response = await _run(
            dispatcher, planner, "update_employee_by_name", {"searchTerm": "Jan Jansen", "updates": {"salary": 9000}}
        )

        assert "Invalid fields: salary" in response.content
        assert "(rejected: salary)" in response.content
        assert store.writes == 0

    @pytest.mark.asyncio
    async def test_update_without_permission(self, dispatcher, viewer, store):
        response = await _run(
            dispatcher, viewer, "update_employee_by_name", {"searchTerm": "Jan Jansen", "updates": {"city": "Ede"}}
        )

        assert response.content == "You do not have permission to edit employee data."
        assert store.writes == 0

    @pytest.mark.asyncio
    async def test_update_without_session(self, dispatcher, store):
        response = await _run(
            dispatcher, None, "update_employee_by_name", {"searchTerm": "Jan Jansen", "updates": {"city": "Ede"}}
        )

        assert response.content == "Your session has expired. Please sign in again."
        assert store.writes == 0

    @pytest.mark.asyncio
    async def test_ambiguous_name_lists_candidates(self, dispatcher, planner, store):
        store.tables["employees"]["44444444-4444-4444-4444-444444444444"] = {
            "id": "44444444-4444-4444-4444-444444444444",
            "name": "Jan Bakker",
            "first_name": "Jan",
            "last_name": "Bakker",
            "status": "active",
        }

        response = await _run(
            dispatcher, planner, "update_employee_by_name", {"searchTerm": "Jan", "updates": {"city": "Ede"}}
        )

        assert response.content.startswith('I found more than one employee matching "Jan"')
        assert "Jan Jansen" in response.content
        assert "Jan Bakker" in response.content
        assert store.writes == 0

    @pytest.mark.asyncio
    async def test_search_employees(self, dispatcher, planner, store):
        response = await _run(
            dispatcher, planner, "search_employees", {"query": "Ahmed", "filters": {"department": "Warehouse"}}
        )

        assert response.content.startswith("Here's the detailed information I found:")
        assert "**Ahmed Yilmaz**" in response.content
        assert "Department: Warehouse" in response.content
        assert response.actions[0].parameters == {"path": f"/participants/{EMP_AHMED}"}
        assert store.search_calls == [("Ahmed", {"department": "Warehouse"})]

    @pytest.mark.asyncio
    async def test_search_without_results(self, dispatcher, planner):
        response = await _run(dispatcher, planner, "search_employees", {"query": "Nobody"})

        assert response.content.startswith('I couldn\'t find any employees matching "Nobody"')
        assert response.actions is None

    @pytest.mark.asyncio
    async def test_navigate_to_employee(self, dispatcher, planner):
        response = await _run(dispatcher, planner, "navigate_to_employee", {"searchTerm": "jan.jansen@example.com"})

        assert response.content == "I found Jan Jansen! I'll take you to their profile page now."
        assert response.actions[0].parameters == {"path": f"/participants/{EMP_JAN}"}

    @pytest.mark.asyncio
    async def test_navigate_to_unknown_employee_offers_the_list(self, dispatcher, planner):
        response = await _run(dispatcher, planner, "navigate_to_employee", {"searchTerm": "Maria Gonzales"})

        assert "couldn't find an employee" in response.content
        assert response.actions[0].parameters == {"path": "/participants"}


class TestTrainingTools:
    @pytest.mark.asyncio
    async def test_create_training_resolves_course_title(self, dispatcher, planner, store):
        response = await _run(
            dispatcher,
            planner,
            "create_training_secure",
            {"course_id": "VCA Basis", "start_date": "2026-12-01", "instructor": "Kees", "max_participants": 12},
        )

        assert response.content == (
            'Great! I\'ve created the "VCA Basis" training with instructor Kees. It\'s scheduled for 2026-12-01.'
        )
        table, fields = store.inserts[0]
        assert table == "trainings"
        assert fields["course_id"] == COURSE_VCA
        assert fields["max_participants"] == 12

    @pytest.mark.asyncio
    async def test_create_training_reads_day_first_dates(self, dispatcher, planner, store):
        response = await _run(
            dispatcher,
            planner,
            "create_training_secure",
            {"course_id": "VCA Basis", "start_date": "18-06-2025", "end_date": "19/06/2025"},
        )

        assert response.content.endswith("It's scheduled for 2025-06-18.")
        fields = store.inserts[0][1]
        assert fields["start_date"] == "2025-06-18"
        assert fields["end_date"] == "2025-06-19"

    @pytest.mark.asyncio
    async def test_create_training_accepts_course_id(self, dispatcher, planner, store):
        await _run(dispatcher, planner, "create_training_secure", {"course_id": COURSE_VCA, "start_date": "2026-12-01"})
        assert store.inserts[0][1]["course_id"] == COURSE_VCA

    @pytest.mark.asyncio
    async def test_unknown_course_id_is_never_guessed(self, dispatcher, planner, store):
        response = await _run(
            dispatcher,
            planner,
            "create_training_secure",
            {"course_id": "00000000-0000-0000-0000-0000000000ff", "start_date": "2026-12-01"},
        )

        assert "couldn't find a course" in response.content
        assert store.writes == 0

    @pytest.mark.asyncio
    async def test_create_training_with_end_before_start(self, dispatcher, planner, store):
        response = await _run(
            dispatcher,
            planner,
            "create_training_secure",
            {"course_id": "VCA Basis", "start_date": "2026-12-02", "end_date": "2026-12-01"},
        )

        assert response.content.startswith("I couldn't save the training: End date is before start date")
        assert store.writes == 0

    @pytest.mark.asyncio
    async def test_add_participant_by_name(self, dispatcher, planner, store):
        response = await _run(
            dispatcher, planner, "add_training_participant", {"trainingId": TRAINING_VCA, "employeeId": "Ahmed Yilmaz"}
        )

        assert response.content == "Perfect! I've added Ahmed Yilmaz to the training. They're now enrolled."
        assert store.inserts[0] == (
            "training_participants",
            {"training_id": TRAINING_VCA, "employee_id": EMP_AHMED, "status": "registered"},
        )

    @pytest.mark.asyncio
    async def test_add_participant_twice(self, dispatcher, planner, store):
        args = {"trainingId": TRAINING_VCA, "employeeId": EMP_JAN}
        await _run(dispatcher, planner, "add_training_participant", args)
        response = await _run(dispatcher, planner, "add_training_participant", args)

        assert response.content == "Employee is already registered for this training."
        assert len(store.inserts) == 1


class TestCertificateTool:
    def _args(self, **certificate):
        data = {"license_type": "VCA Basis", "certificate_number": "VCA-1001", "expiry_date": "18-06-2035"}
        data.update(certificate)
        return {"employeeId": "Jan Jansen", "certificateData": data}

    @pytest.mark.asyncio
    async def test_new_certificate(self, dispatcher, planner, store):
        response = await _run(dispatcher, planner, "update_employee_certificate", self._args())

        assert response.content == "Done! I've added the VCA Basis certificate for Jan Jansen."
        table, fields = store.inserts[0]
        assert table == "employee_licenses"
        assert fields["license_id"] == LICENSE_VCA
        assert fields["employee_id"] == EMP_JAN
        assert fields["expiry_date"] == "2035-06-18"

    @pytest.mark.asyncio
    async def test_duplicate_certificate(self, dispatcher, planner, store):
        await _run(dispatcher, planner, "update_employee_certificate", self._args())
        response = await _run(dispatcher, planner, "update_employee_certificate", self._args())

        assert response.content == (
            "Jan Jansen already has this VCA Basis certificate with the same expiry date, so I didn't add it again."
        )
        assert len(store.inserts) == 1

    @pytest.mark.asyncio
    async def test_renewal(self, dispatcher, planner, store):
        await _run(dispatcher, planner, "update_employee_certificate", self._args(expiry_date="2025-06-18"))
        response = await _run(dispatcher, planner, "update_employee_certificate", self._args())

        assert response.content == (
            "Got it! I've recorded the renewal of Jan Jansen's VCA Basis certificate (new expiry 18-06-2035)."
        )
        assert len(store.inserts) == 2

    @pytest.mark.asyncio
    async def test_unknown_certificate_type(self, dispatcher, planner, store):
        response = await _run(dispatcher, planner, "update_employee_certificate", self._args(license_type="Hoogwerker"))

        assert response.content.startswith('I couldn\'t find a certificate type matching "Hoogwerker"')
        assert store.writes == 0


class TestDispatcherErrors:
    @pytest.mark.asyncio
    async def test_store_exception_becomes_apology(self, dispatcher, planner, store):
        async def broken(query, filters=None, limit=10):
            raise ConnectionError("database unavailable")

        store.search_employees = broken
        response = await _run(dispatcher, planner, "search_employees", {"query": "Jan"})

        assert response.content == "I encountered an error while handling that request (search employees)."
        assert response.suggestions == ["Try again", "Check permissions", "Contact administrator"]

    @pytest.mark.asyncio
    async def test_write_failure_is_reported(self, dispatcher, planner, store):
        store.fail_writes = True
        response = await _run(
            dispatcher, planner, "update_employee_by_name", {"searchTerm": "Jan Jansen", "updates": {"city": "Ede"}}
        )

        assert response.content.startswith("Hmm, I ran into an issue saving Jan Jansen's information.")
