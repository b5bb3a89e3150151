"""Document search client - semantic search against a per-book index.

Security: Reads API key from settings only, never hardcoded.
Without a key the null client answers every query with no hits.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from openai import AsyncOpenAI

from backend.saintshelp.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchHit:
    """Raw hit returned by the index: content text plus the index's own score."""

    text: str
    score: float | None


class DocumentSearchClient(Protocol):
    """Protocol for document search implementations."""

    async def search(self, index_handle: str, query: str, max_results: int) -> list[SearchHit]:
        """Query one document's index.

        Args:
            index_handle: Opaque handle of the document's index
            query: Natural-language question
            max_results: Maximum number of hits to return

        Returns:
            Hits in index order (multi-part content joined with newlines)
        """
        ...


def hit_text(content: Any) -> str:
    """Join multi-part hit content into one string.

    Args:
        content: List of content parts (objects or dicts with ``text``) or a plain string

    Returns:
        Parts joined with newlines; empty parts are skipped
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content

    parts: list[str] = []
    for part in content:
        text = part.get("text") if isinstance(part, dict) else getattr(part, "text", None)
        if text:
            parts.append(str(text))
    return "\n".join(parts)


class NullSearchClient:
    """Search client used when no index service is configured."""

    async def search(self, index_handle: str, query: str, max_results: int) -> list[SearchHit]:
        """Return no hits."""
        return []


class OpenAIVectorStoreSearch:
    """OpenAI vector-store backed search client."""

    def __init__(self, client: AsyncOpenAI) -> None:
        """Initialize search client.

        Args:
            client: Shared AsyncOpenAI client
        """
        self._client = client

    async def search(self, index_handle: str, query: str, max_results: int) -> list[SearchHit]:
        """Search one vector store."""
        page = await self._client.vector_stores.search(
            index_handle,
            query=query,
            max_num_results=max_results,
        )

        hits: list[SearchHit] = []
        for result in page.data:
            score = result.score if isinstance(result.score, int | float) else None
            hits.append(SearchHit(text=hit_text(result.content), score=score))
        return hits


def create_openai_client(settings: Settings) -> AsyncOpenAI | None:
    """Build the shared OpenAI client, or None when no key is configured."""
    api_key = settings.openai_api_key
    if api_key and api_key.get_secret_value():
        return AsyncOpenAI(api_key=api_key.get_secret_value())
    return None


def get_search_client(openai_client: AsyncOpenAI | None) -> DocumentSearchClient:
    """Factory function to get the search client for the configured services.

    Returns:
        OpenAIVectorStoreSearch if an OpenAI client exists, NullSearchClient otherwise
    """
    if openai_client is not None:
        logger.info("Using OpenAI vector stores for document search")
        return OpenAIVectorStoreSearch(openai_client)

    logger.warning("No OpenAI API key configured, document search returns no hits")
    return NullSearchClient()
