"""Tests for the HTTP surface via FastAPI TestClient with stubbed services."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from tests.fakes.fake_store import FakeDocumentStore, rate_limited
from trainai.core.results import LLMResponseError
from trainai.core.schemas_ai import AIResponse
from trainai.core.schemas_documents import DocumentProcessingResult, SuggestedMatch
from trainai.main import create_app

AUTH = {"Authorization": "Bearer session-token"}


@pytest.fixture
def services(planner):
    documents = FakeDocumentStore()
    documents.add("doc-1", "vca.pdf", "application/pdf", b"%PDF-1.4")
    return SimpleNamespace(
        users=SimpleNamespace(
            actor_from_token=AsyncMock(side_effect=lambda token: planner if token == "session-token" else None)
        ),
        assistant=SimpleNamespace(handle=AsyncMock(return_value=AIResponse(content="Hi there!"))),
        documents=documents,
        pipeline=SimpleNamespace(process_document=AsyncMock()),
    )


@pytest.fixture
def client(services):
    app = create_app(use_lifespan=False)
    app.state.services = services
    return TestClient(app)


def test_health_check(client):
    """Test that /health returns 200 with status ok."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


class TestChatEndpoint:
    def test_requires_token(self, client, services):
        response = client.post("/v1/ai/chat", json={"message": "hi"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"
        services.assistant.handle.assert_not_awaited()

    def test_rejects_invalid_session(self, client):
        response = client.post(
            "/v1/ai/chat", json={"message": "hi"}, headers={"Authorization": "Bearer expired"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired session"

    def test_returns_assistant_reply(self, client, services, planner):
        response = client.post(
            "/v1/ai/chat",
            json={
                "message": "hi",
                "conversationHistory": [{"role": "user", "content": "hello"}],
                "context": {"currentPage": "/dashboard"},
            },
            headers=AUTH,
        )

        assert response.status_code == 200
        assert response.json() == {"content": "Hi there!"}
        request, actor = services.assistant.handle.await_args.args
        assert request.conversation_history[0].content == "hello"
        assert request.context.current_page == "/dashboard"
        assert actor is planner

    def test_empty_message_is_rejected(self, client):
        response = client.post("/v1/ai/chat", json={"message": ""}, headers=AUTH)

        assert response.status_code == 422

    def test_rate_limit_maps_to_503(self, client, services):
        services.assistant.handle.side_effect = rate_limited()

        response = client.post("/v1/ai/chat", json={"message": "hi"}, headers=AUTH)

        assert response.status_code == 503
        assert "busy" in response.json()["detail"]

    def test_provider_error_maps_to_502(self, client, services):
        services.assistant.handle.side_effect = LLMResponseError("bad gateway", status_code=500)

        response = client.post("/v1/ai/chat", json={"message": "hi"}, headers=AUTH)

        assert response.status_code == 502


def test_tools_listing(client):
    response = client.get("/v1/ai/tools", headers=AUTH)

    assert response.status_code == 200
    names = {tool["function"]["name"] for tool in response.json()["tools"]}
    assert "update_employee_by_name" in names
    assert len(names) == 7


class TestProcessDocumentEndpoint:
    def test_unknown_document_is_404(self, client, services):
        response = client.post("/v1/documents/missing/process", headers=AUTH)

        assert response.status_code == 404
        services.pipeline.process_document.assert_not_awaited()

    def test_returns_pipeline_result_with_camel_case_keys(self, client, services):
        services.pipeline.process_document.return_value = DocumentProcessingResult(
            success=True,
            confidence=85.0,
            extracted_data={"certificateNumber": "VCA-2025-001"},
            suggested_employee=SuggestedMatch(id="emp-1", name="Jan Jansen", confidence=1.0),
        )

        response = client.post("/v1/documents/doc-1/process", headers=AUTH)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["extractedData"] == {"certificateNumber": "VCA-2025-001"}
        assert body["suggestedEmployee"]["name"] == "Jan Jansen"
        services.pipeline.process_document.assert_awaited_once_with("doc-1")
