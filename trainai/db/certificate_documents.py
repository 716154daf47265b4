"""Database and storage operations for uploaded certificate documents."""

from datetime import datetime, timezone
from typing import Any

from supabase import AsyncClient

from trainai.core.logging import get_logger
from trainai.core.schemas_documents import ProcessingStatus

logger = get_logger(__name__)


class CertificateDocumentStore:
    """Reads and updates ``certificate_documents`` and downloads the files behind them."""

    def __init__(self, client: AsyncClient, bucket: str = "documents"):
        self._client = client
        self._bucket = bucket

    async def get(self, document_id: str) -> dict[str, Any] | None:
        response = await (
            self._client.table("certificate_documents")
            .select("id, file_name, file_path, mime_type, file_size, processing_status")
            .eq("id", document_id)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    async def download(self, file_path: str) -> bytes:
        """
        Download a document's bytes from storage.

        Raises:
            ValueError: If storage returns no content
        """
        content = await self._client.storage.from_(self._bucket).download(file_path)
        if not content:
            raise ValueError(f"Failed to download file from storage: {file_path}")
        return content

    async def set_status(self, document_id: str, status: ProcessingStatus) -> None:
        await self.update(document_id, {"processing_status": status})

    async def update(self, document_id: str, fields: dict[str, Any]) -> None:
        payload = {**fields, "updated_at": datetime.now(timezone.utc).isoformat()}
        await self._client.table("certificate_documents").update(payload).eq("id", document_id).execute()
        logger.debug(f"Updated certificate document {document_id}: {sorted(fields)}")
