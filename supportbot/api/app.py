"""
FastAPI application factory and lifespan management.

The lifespan builds the shared services once (model gateway, session store,
orchestrator, history cache) and stores them on app.state for every request.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from supportbot import __version__
from supportbot.api.routers import ask, chat_history, health
from supportbot.config.logging import get_logger
from supportbot.config.settings import Settings, get_settings
from supportbot.errors import GenerationFailed, SessionNotFound, ToolProviderUnavailable
from supportbot.history.cache import InMemoryHistoryCache
from supportbot.history.service import ChatHistoryService
from supportbot.history.titles import TitleGenerator
from supportbot.llm.gateway import ModelGateway
from supportbot.llm.orchestrator import ChatOrchestrator
from supportbot.sessions.store import SessionStore
from supportbot.tools.mcp_client import MCPToolProvider

logger = get_logger(__name__)


def build_orchestrator(settings: Settings, gateway: ModelGateway) -> ChatOrchestrator:
    """Wire an orchestrator that opens a fresh MCP provider for every call."""
    return ChatOrchestrator(
        gateway=gateway,
        sessions=SessionStore(),
        provider_factory=lambda: MCPToolProvider.from_settings(settings.mcp),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Create shared services at startup.

    Raises:
        ConfigurationError: If the LLM API key is missing; the app does not start
    """
    settings: Settings = app.state.settings

    gateway = ModelGateway(settings.llm)
    app.state.orchestrator = build_orchestrator(settings, gateway)
    app.state.history = ChatHistoryService(
        InMemoryHistoryCache(default_ttl=settings.history.ttl_seconds)
    )
    app.state.title_generator = TitleGenerator(gateway)
    logger.info(
        f"Services ready (model: {settings.llm.model}, "
        f"MCP: {settings.mcp.command} {' '.join(settings.mcp.args)})"
    )

    yield

    logger.info("Shutting down SupportBot")


async def _tool_provider_unavailable(request: Request, exc: ToolProviderUnavailable) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Tool provider unavailable"},
    )


async def _generation_failed(request: Request, exc: GenerationFailed) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": "Model generation failed"},
    )


async def _session_not_found(request: Request, exc: SessionNotFound) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": "Chat session not found"},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Optional Settings instance. If not provided, settings are
                  loaded from the environment.

    Returns:
        FastAPI: Configured application instance.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="supportbot",
        description="Customer support chat answered by an LLM, optionally with MCP tools",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ToolProviderUnavailable, _tool_provider_unavailable)
    app.add_exception_handler(GenerationFailed, _generation_failed)
    app.add_exception_handler(SessionNotFound, _session_not_found)

    app.include_router(health.router)
    app.include_router(ask.router)
    app.include_router(chat_history.router)

    return app
