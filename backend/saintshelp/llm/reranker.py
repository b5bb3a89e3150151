"""Relevance reranker with OpenAI integration.

The model only orders passages. It sees each passage as an opaque, numbered
block and must answer with a permutation of block indices under a strict
JSON schema; any free text is discarded.

Security: Reads API key from settings only, never hardcoded.
"""

import logging
from typing import Protocol

from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from backend.saintshelp.config import Settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You rank quoted passages for relevance to a user question. "
    "Do not rewrite, summarize, or interpret the passages. "
    "Return JSON only, with ranked_indices (array of integers), most relevant first."
)

RANKING_SCHEMA = {
    "type": "object",
    "properties": {
        "ranked_indices": {
            "type": "array",
            "items": {"type": "integer"},
        },
    },
    "required": ["ranked_indices"],
    "additionalProperties": False,
}


class Ranking(BaseModel):
    """Structured rerank output."""

    ranked_indices: list[int]


class Reranker(Protocol):
    """Protocol for reranker implementations."""

    async def rank_indices(self, question: str, blocks: list[tuple[str, str]]) -> list[int]:
        """Order passage blocks by relevance.

        Args:
            question: User question
            blocks: ``(book_title, preview_text)`` pairs, addressed by position

        Returns:
            Block indices, most relevant first (may be partial or malformed;
            callers must repair it into a total ordering)
        """
        ...


def format_blocks(blocks: list[tuple[str, str]]) -> str:
    """Render blocks as ``#<i> (Book: <title>)`` headed sections."""
    return "\n\n".join(
        f"#{i} (Book: {title})\n{text}" for i, (title, text) in enumerate(blocks)
    )


def parse_ranked_indices(raw: str | None) -> list[int]:
    """Parse model output into indices; malformed output yields an empty list."""
    if not raw:
        return []
    try:
        return Ranking.model_validate_json(raw).ranked_indices
    except ValidationError:
        logger.warning("Reranker returned output that does not match the ranking schema")
        return []


class OpenAIReranker:
    """OpenAI Responses API reranker."""

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o-mini") -> None:
        """Initialize reranker.

        Args:
            client: Shared AsyncOpenAI client
            model: Model name to use (default: gpt-4o-mini for cost efficiency)
        """
        self.client = client
        self.model = model

    async def rank_indices(self, question: str, blocks: list[tuple[str, str]]) -> list[int]:
        """Ask the model for a ranking of the blocks."""
        if not blocks:
            return []

        user_prompt = (
            f"Question:\n{question}\n\nPassages:\n{format_blocks(blocks)}\n\n"
            'Return JSON: {"ranked_indices":[...]} only.'
        )

        response = await self.client.responses.create(
            model=self.model,
            input=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            text={
                "format": {
                    "type": "json_schema",
                    "name": "ranking",
                    "schema": RANKING_SCHEMA,
                    "strict": True,
                }
            },
        )

        return parse_ranked_indices(response.output_text)


def get_reranker(settings: Settings, client: AsyncOpenAI | None) -> Reranker | None:
    """Factory function to get the configured reranker.

    Returns:
        OpenAIReranker if enabled and a client exists, None otherwise
        (callers fall back to score ordering)
    """
    if not settings.rerank_enabled:
        logger.info("Reranking disabled by configuration")
        return None

    if client is None:
        logger.warning("No OpenAI API key configured, ranking by index score only")
        return None

    return OpenAIReranker(client, model=settings.openai_rerank_model)
