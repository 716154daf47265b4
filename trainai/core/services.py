"""Service wiring for the application.

Everything that talks to Supabase or the model provider is built once at
startup and shared through ``app.state.services``.
"""

from dataclasses import dataclass

import httpx

from trainai.chains.assistant import AssistantService
from trainai.chains.chat_tools import ToolDispatcher, ToolServices
from trainai.context.platform_context import PlatformContextAggregator
from trainai.core.config import Settings
from trainai.core.document_processing import FieldExtractor, TextExtractionAdapter
from trainai.core.entity_resolver import EntityResolver
from trainai.core.llm import LLMClient
from trainai.core.logging import get_logger
from trainai.core.secure_mutations import SecureMutationLayer
from trainai.db.audit_logs import AuditLogStore
from trainai.db.certificate_documents import CertificateDocumentStore
from trainai.db.supabase_client import create_supabase
from trainai.db.training_store import TrainingStore
from trainai.db.users import UserDirectory
from trainai.graphs.certificate_extraction_graph import CertificateExtractionPipeline

logger = get_logger(__name__)

LLM_TIMEOUT_SECONDS = 120.0


@dataclass
class ServiceContainer:
    """Long-lived collaborators shared by request handlers."""

    settings: Settings
    http_client: httpx.AsyncClient
    users: UserDirectory
    store: TrainingStore
    documents: CertificateDocumentStore
    mutations: SecureMutationLayer
    assistant: AssistantService
    pipeline: CertificateExtractionPipeline

    @classmethod
    async def build(cls, settings: Settings) -> "ServiceContainer":
        supabase = await create_supabase(settings)
        http_client = httpx.AsyncClient(timeout=LLM_TIMEOUT_SECONDS)

        llm = LLMClient(settings, http_client)
        store = TrainingStore(supabase)
        documents = CertificateDocumentStore(supabase, bucket=settings.DOCUMENTS_BUCKET)
        resolver = EntityResolver()
        mutations = SecureMutationLayer(
            store,
            AuditLogStore(supabase),
            audit_failed_attempts=settings.AUDIT_FAILED_ATTEMPTS,
        )

        dispatcher = ToolDispatcher(ToolServices(store=store, resolver=resolver, mutations=mutations))
        assistant = AssistantService(llm, PlatformContextAggregator(store, settings), dispatcher, settings)
        pipeline = CertificateExtractionPipeline(
            documents,
            store,
            TextExtractionAdapter(llm, settings),
            FieldExtractor(llm),
            resolver,
        )

        logger.info(f"Services ready (env={settings.TRAINAI_ENV}, model={settings.OPENAI_MODEL})")
        return cls(
            settings=settings,
            http_client=http_client,
            users=UserDirectory(supabase),
            store=store,
            documents=documents,
            mutations=mutations,
            assistant=assistant,
            pipeline=pipeline,
        )

    async def aclose(self) -> None:
        await self.http_client.aclose()
