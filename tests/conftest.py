"""Pytest configuration and fixtures."""

import os
from uuid import UUID

import pytest

from tests.fakes.fake_store import (
    FakeAuditLog,
    FakeDocumentStore,
    FakeTrainingStore,
    ScriptedLLM,
    sample_store,
)
from trainai.core.config import Settings
from trainai.core.entity_resolver import EntityResolver
from trainai.core.schemas_mutations import Actor, Capability
from trainai.core.secure_mutations import SecureMutationLayer

ACTOR_ID = UUID("99999999-0000-0000-0000-000000000001")


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["OPENAI_API_KEY"] = "test-openai-key"
    os.environ["TRAINAI_ENV"] = "test"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        SUPABASE_URL="https://test.supabase.co",
        SUPABASE_SERVICE_ROLE_KEY="test-key",
        OPENAI_API_KEY="test-openai-key",
        TRAINAI_ENV="test",
    )


@pytest.fixture
def store() -> FakeTrainingStore:
    return sample_store()


@pytest.fixture
def audit_log() -> FakeAuditLog:
    return FakeAuditLog()


@pytest.fixture
def resolver() -> EntityResolver:
    return EntityResolver()


@pytest.fixture
def mutations(store, audit_log) -> SecureMutationLayer:
    return SecureMutationLayer(store, audit_log)


@pytest.fixture
def planner() -> Actor:
    """A planner allowed to do everything the assistant can do."""
    return Actor(
        user_id=ACTOR_ID,
        email="planner@example.com",
        role="planner",
        capabilities=frozenset(c.value for c in Capability),
    )


@pytest.fixture
def viewer() -> Actor:
    """A signed-in user without any write permission."""
    return Actor(user_id=ACTOR_ID, email="viewer@example.com", role="viewer")


@pytest.fixture
def documents() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()
