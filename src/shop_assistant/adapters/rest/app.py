"""
FastAPI application: REST adapter for the shop assistant.

Usage:
    python run_api.py

Or directly:
    uvicorn shop_assistant.adapters.rest.app:app --host 0.0.0.0 --port 8000 --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shop_assistant import __version__
from shop_assistant.adapters.rest.dependencies import set_factory
from shop_assistant.adapters.rest.routers import chat, conversations
from shop_assistant.domain.exceptions import (
    ConversationNotFoundError,
    DomainError,
    NotFoundError,
    PersistenceError,
    RequestCancelledError,
    UpstreamUnavailableError,
    ValidationError,
)
from shop_assistant.factory import ServiceFactory
from shop_assistant.infrastructure.config import Settings

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins.
_STATUS_BY_ERROR: list[tuple[type[DomainError], int]] = [
    (ConversationNotFoundError, 404),
    (NotFoundError, 404),
    (ValidationError, 400),
    (UpstreamUnavailableError, 503),
    (RequestCancelledError, 504),
    (PersistenceError, 500),
]


def create_app(factory: ServiceFactory | None = None) -> FastAPI:
    """Build the FastAPI app.

    Args:
        factory: Pre-built factory (tests). When None, one is built from
                 the environment at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize ServiceFactory on startup."""
        nonlocal factory
        if factory is None:
            config = Settings.from_env()
            logging.basicConfig(
                level=config.log_level.upper(),
                format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            )
            factory = ServiceFactory(config)
        await factory.initialize()
        set_factory(factory)
        yield
        # No teardown needed: aiosqlite connections are per-operation

    app = FastAPI(
        title="Shop Assistant",
        version=__version__,
        description="Conversational product search and comparison powered by a tool-calling LLM.",
        lifespan=lifespan,
    )

    # CORS: permissive for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(chat.router)
    app.include_router(conversations.router)
    app.add_exception_handler(DomainError, _domain_error_handler)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok", "version": __version__}

    return app


async def _domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in _STATUS_BY_ERROR if isinstance(exc, error_type)),
        500,
    )
    if status_code >= 500:
        logger.error("%s %s failed: %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


app = create_app()
