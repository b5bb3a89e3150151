"""Index builder - creates and removes the external search index of a book."""

import logging
from dataclasses import dataclass
from typing import Protocol

from openai import AsyncOpenAI

from backend.saintshelp.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuiltIndex:
    """Handles returned after a document has been indexed."""

    index_handle: str
    file_id: str


class IndexBuilder(Protocol):
    """Protocol for index lifecycle implementations."""

    async def build(self, *, title: str, filename: str, data: bytes) -> BuiltIndex:
        """Upload a PDF and wait until its index is searchable."""
        ...

    async def remove(self, *, index_handle: str | None, file_id: str | None) -> None:
        """Remove the index and uploaded file. Best-effort; never raises."""
        ...


class UnavailableIndexBuilder:
    """Index builder used when no index service is configured."""

    async def build(self, *, title: str, filename: str, data: bytes) -> BuiltIndex:
        raise UpstreamError("Document indexing is not configured")

    async def remove(self, *, index_handle: str | None, file_id: str | None) -> None:
        return None


class OpenAIIndexBuilder:
    """OpenAI vector-store index builder (one vector store per book)."""

    def __init__(self, client: AsyncOpenAI) -> None:
        self._client = client

    async def build(self, *, title: str, filename: str, data: bytes) -> BuiltIndex:
        """Create a vector store, upload the file and poll until indexing completes.

        Args:
            title: Book title (used to name the vector store)
            filename: Original file name
            data: PDF bytes

        Returns:
            BuiltIndex with vector store and file IDs

        Raises:
            UpstreamError: If the file could not be indexed
        """
        vector_store = await self._client.vector_stores.create(name=f"SaintsHelp - {title}")
        uploaded = await self._client.files.create(
            file=(filename, data, "application/pdf"),
            purpose="assistants",
        )
        attached = await self._client.vector_stores.files.create_and_poll(
            vector_store_id=vector_store.id,
            file_id=uploaded.id,
        )

        if attached.status != "completed":
            logger.error(
                f"Indexing of '{title}' ended with status {attached.status}: {attached.last_error}"
            )
            await self.remove(index_handle=vector_store.id, file_id=uploaded.id)
            raise UpstreamError(f"Indexing failed with status {attached.status}")

        logger.info(f"Indexed '{title}' into vector store {vector_store.id}")
        return BuiltIndex(index_handle=vector_store.id, file_id=uploaded.id)

    async def remove(self, *, index_handle: str | None, file_id: str | None) -> None:
        """Delete the uploaded file and vector store; failures are logged and ignored."""
        if file_id:
            try:
                await self._client.files.delete(file_id)
            except Exception:
                logger.warning(f"Failed to delete indexed file {file_id}", exc_info=True)

        if index_handle:
            try:
                await self._client.vector_stores.delete(index_handle)
            except Exception:
                logger.warning(f"Failed to delete vector store {index_handle}", exc_info=True)


def get_index_builder(openai_client: AsyncOpenAI | None) -> IndexBuilder:
    """Factory function for the configured index builder."""
    if openai_client is not None:
        return OpenAIIndexBuilder(openai_client)
    return UnavailableIndexBuilder()
