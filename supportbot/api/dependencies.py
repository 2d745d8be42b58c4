"""
Dependency providers for FastAPI endpoints.

Shared services are created once in the application lifespan and stored on
app.state; these functions hand them to the routers.
"""

from fastapi import HTTPException, Request

from supportbot.history.service import ChatHistoryService
from supportbot.history.titles import TitleGenerator
from supportbot.llm.orchestrator import ChatOrchestrator


def _from_state(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=503, detail=f"{name} not initialized")
    return service


def get_orchestrator(request: Request) -> ChatOrchestrator:
    """Get the chat orchestrator from app state (503 if not initialized)."""
    return _from_state(request, "orchestrator")


def get_history_service(request: Request) -> ChatHistoryService:
    """Get the chat history service from app state (503 if not initialized)."""
    return _from_state(request, "history")


def get_title_generator(request: Request) -> TitleGenerator:
    """Get the title generator from app state (503 if not initialized)."""
    return _from_state(request, "title_generator")
