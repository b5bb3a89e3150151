"""Shared pytest fixtures for all test suites."""

import uuid
from collections.abc import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from backend.saintshelp.db.models import Base
from backend.saintshelp.models.passages import Candidate
from backend.saintshelp.search.client import SearchHit

USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
OTHER_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000003")


@pytest_asyncio.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine shared across connections, schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(sqlite_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(sqlite_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_candidate() -> Callable[..., Candidate]:
    """Factory for candidates with sensible defaults."""

    def _make(
        preview: str = "A saying about humility and patience in the desert.",
        *,
        score: float | None = 0.5,
        book_id: uuid.UUID | None = None,
        title: str = "Sayings",
        full: str | None = None,
    ) -> Candidate:
        return Candidate(
            book_id=book_id or uuid.UUID("00000000-0000-0000-0000-0000000000b1"),
            book_title=title,
            score=score,
            preview_text=preview,
            full_text=full if full is not None else preview,
        )

    return _make


class FakeSearchClient:
    """Search client returning canned hits per index handle."""

    def __init__(self) -> None:
        self.hits: dict[str, list[SearchHit]] = {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, str, int]] = []

    async def search(self, index_handle: str, query: str, max_results: int) -> list[SearchHit]:
        self.calls.append((index_handle, query, max_results))
        if index_handle in self.errors:
            raise self.errors[index_handle]
        return self.hits.get(index_handle, [])[:max_results]


@pytest.fixture
def fake_search_client() -> FakeSearchClient:
    return FakeSearchClient()
