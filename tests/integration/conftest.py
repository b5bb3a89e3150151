"""Fixtures for API tests: a file-backed SQLite app with faked external services."""

import time
import uuid
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

from backend.saintshelp.api.auth import get_current_user
from backend.saintshelp.config import get_settings
from backend.saintshelp.db.context import RequestContext
from backend.saintshelp.db.models import Base
from backend.saintshelp.main import create_app
from backend.saintshelp.search.indexing import BuiltIndex

USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
OTHER_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000003")


class FakeIndexBuilder:
    """Index builder that records calls instead of uploading."""

    def __init__(self) -> None:
        self.built: list[tuple[str, str, bytes]] = []
        self.removed: list[tuple[str | None, str | None]] = []
        self.build_error: Exception | None = None

    async def build(self, *, title: str, filename: str, data: bytes) -> BuiltIndex:
        if self.build_error is not None:
            raise self.build_error
        self.built.append((title, filename, data))
        n = len(self.built)
        return BuiltIndex(index_handle=f"vs_uploaded_{n}", file_id=f"file_{n}")

    async def remove(self, *, index_handle: str | None, file_id: str | None) -> None:
        self.removed.append((index_handle, file_id))


@dataclass
class ApiHarness:
    client: TestClient
    app: FastAPI
    db: sessionmaker[Session]
    index_builder: FakeIndexBuilder

    def act_as(self, user_id: uuid.UUID, *, is_admin: bool = False) -> None:
        ctx = RequestContext(user_id=user_id, is_admin=is_admin)
        self.app.dependency_overrides[get_current_user] = lambda: ctx

    def seed(self, *rows: object) -> None:
        with self.db() as session:
            session.add_all(rows)
            session.commit()


@pytest.fixture
def api(tmp_path: Path, fake_search_client) -> Iterator[ApiHarness]:
    """App wired to a temporary SQLite file; lifespan is not run."""
    db_path = tmp_path / "saintshelp.db"

    sync_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)

    app = create_app()
    async_engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    app.state.session_factory = async_sessionmaker(async_engine, expire_on_commit=False)
    app.state.redis = None
    app.state.search_client = fake_search_client
    app.state.reranker = None
    index_builder = FakeIndexBuilder()
    app.state.index_builder = index_builder

    harness = ApiHarness(
        client=TestClient(app),
        app=app,
        db=sessionmaker(bind=sync_engine, expire_on_commit=False),
        index_builder=index_builder,
    )
    harness.act_as(USER_ID)

    yield harness

    app.dependency_overrides.clear()
    sync_engine.dispose()


@pytest.fixture
def make_token() -> Callable[[uuid.UUID], str]:
    """Mint session tokens signed with the test JWT secret."""

    def _make(user_id: uuid.UUID) -> str:
        settings = get_settings()
        assert settings.jwt_secret is not None
        payload = {
            "sub": str(user_id),
            "aud": settings.jwt_audience,
            "exp": int(time.time()) + 600,
        }
        return jwt.encode(payload, settings.jwt_secret.get_secret_value(), algorithm="HS256")

    return _make
