"""Health check endpoint router."""

from fastapi import APIRouter, Request

from supportbot import __version__
from supportbot.api.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Report service status, version and the configured model."""
    settings = getattr(request.app.state, "settings", None)
    return HealthResponse(
        status="ok",
        version=__version__,
        model=settings.llm.model if settings is not None else None,
    )
