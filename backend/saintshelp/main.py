"""FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.saintshelp.api.routes.ask import router as ask_router
from backend.saintshelp.api.routes.books import router as books_router
from backend.saintshelp.api.routes.conversations import router as conversations_router
from backend.saintshelp.api.routes.health import router as health_router
from backend.saintshelp.api.routes.metrics import router as metrics_router
from backend.saintshelp.api.routes.passages import router as passages_router
from backend.saintshelp.api.routes.questions import router as questions_router
from backend.saintshelp.config import get_settings
from backend.saintshelp.db.engine import (
    create_async_engine_from_settings,
    create_async_session_factory,
)
from backend.saintshelp.errors import SaintsHelpError
from backend.saintshelp.llm.reranker import get_reranker
from backend.saintshelp.search.client import create_openai_client, get_search_client
from backend.saintshelp.search.indexing import get_index_builder

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build process-wide service handles and release them on shutdown."""
    settings = get_settings()

    engine = create_async_engine_from_settings(settings)
    app.state.session_factory = create_async_session_factory(engine)

    app.state.redis = (
        redis.from_url(settings.redis_url, decode_responses=True) if settings.redis_url else None
    )

    openai_client = create_openai_client(settings)
    app.state.search_client = get_search_client(openai_client)
    app.state.reranker = get_reranker(settings, openai_client)
    app.state.index_builder = get_index_builder(openai_client)

    try:
        yield
    finally:
        if app.state.redis is not None:
            await app.state.redis.aclose()
        if openai_client is not None:
            await openai_client.close()
        await engine.dispose()


async def saintshelp_error_handler(request: Request, exc: SaintsHelpError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies, paths and forms are reported as 400s."""
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


def create_app() -> FastAPI:
    """Create the application with routes and error handlers registered."""
    app = FastAPI(title="SaintsHelp API", version="0.1.0", lifespan=lifespan)

    app.add_exception_handler(SaintsHelpError, saintshelp_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]

    # Register routes
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(ask_router)
    app.include_router(passages_router)
    app.include_router(conversations_router)
    app.include_router(books_router)
    app.include_router(questions_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {"message": "SaintsHelp API", "version": "0.1.0"}

    return app


app = create_app()
