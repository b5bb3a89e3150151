"""FastAPI dependencies that assemble request-scoped services.

Process-wide handles (session factory, Redis client, search client, reranker,
index builder) are built once at startup and kept on ``app.state``.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.saintshelp.config import NoiseThresholds, UnitLimits, get_settings
from backend.saintshelp.db.engine import get_session
from backend.saintshelp.db.repositories import BookRepository, PromptRepository, QuotaCounter
from backend.saintshelp.db.sql_repositories import (
    SqlBookRepository,
    SqlConversationRepository,
    SqlPromptRepository,
    SqlQuotaCounter,
)
from backend.saintshelp.llm.reranker import Reranker
from backend.saintshelp.orchestration.ask import AskService
from backend.saintshelp.orchestration.ledger import ConversationLedger
from backend.saintshelp.quota import QuotaGate, RedisQuotaCounter
from backend.saintshelp.retrieval.aggregator import CandidateAggregator
from backend.saintshelp.retrieval.ranker import Ranker
from backend.saintshelp.search.client import DocumentSearchClient
from backend.saintshelp.search.indexing import IndexBuilder


async def get_book_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Second session for book reads that run concurrently with conversation reads."""
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        yield session


def get_search_client(request: Request) -> DocumentSearchClient:
    return request.app.state.search_client


def get_reranker(request: Request) -> Reranker | None:
    return request.app.state.reranker


def get_index_builder(request: Request) -> IndexBuilder:
    return request.app.state.index_builder


def get_quota_counter(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> QuotaCounter:
    """Redis counter when Redis is configured, otherwise the ``usage_daily`` table."""
    redis_client = getattr(request.app.state, "redis", None)
    if redis_client is not None:
        return RedisQuotaCounter(redis_client)
    return SqlQuotaCounter(session)


def get_quota_gate(
    counter: Annotated[QuotaCounter, Depends(get_quota_counter)],
) -> QuotaGate:
    return QuotaGate(counter, get_settings().daily_question_limit)


def get_ledger(session: Annotated[AsyncSession, Depends(get_session)]) -> ConversationLedger:
    settings = get_settings()
    return ConversationLedger(
        SqlConversationRepository(session),
        title_chars=settings.conversation_title_chars,
        lookup_window=settings.passage_lookup_window,
    )


def get_book_repository(
    session: Annotated[AsyncSession, Depends(get_book_session)],
) -> BookRepository:
    return SqlBookRepository(session)


def get_prompt_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PromptRepository:
    return SqlPromptRepository(session)


def get_ask_service(
    quota: Annotated[QuotaGate, Depends(get_quota_gate)],
    ledger: Annotated[ConversationLedger, Depends(get_ledger)],
    books: Annotated[BookRepository, Depends(get_book_repository)],
    search_client: Annotated[DocumentSearchClient, Depends(get_search_client)],
    reranker: Annotated[Reranker | None, Depends(get_reranker)],
) -> AskService:
    """Assemble the ask pipeline for one request."""
    settings = get_settings()
    aggregator = CandidateAggregator(
        search_client,
        candidates_per_book=settings.candidates_per_book,
        search_timeout_ms=settings.search_timeout_ms,
        limits=UnitLimits.from_settings(settings),
        thresholds=NoiseThresholds.from_settings(settings),
    )
    ranker = Ranker(
        reranker,
        rerank_candidate_cap=settings.rerank_candidate_cap,
        rerank_timeout_ms=settings.rerank_timeout_ms,
    )
    return AskService(
        quota=quota,
        ledger=ledger,
        books=books,
        aggregator=aggregator,
        ranker=ranker,
        top_passages=settings.top_passages,
        title_chars=settings.conversation_title_chars,
    )
