"""
Chat history endpoints.

Per-user chat session records kept in the history cache: listing, lookup,
creation, appending messages, renaming, deletion and title generation.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from supportbot.api.dependencies import get_history_service, get_title_generator
from supportbot.api.schemas import (
    AddMessageRequest,
    CreateChatSessionRequest,
    GenerateTitleRequest,
    TitleResponse,
    UpdateTitleRequest,
)
from supportbot.config.logging import get_logger
from supportbot.errors import SessionNotFound
from supportbot.history.models import ChatSession
from supportbot.history.service import ChatHistoryService
from supportbot.history.titles import TitleGenerator, fallback_title

logger = get_logger(__name__)

router = APIRouter(prefix="/chat-history", tags=["chat-history"])


def _require_user_id(user_id: str | None) -> str:
    if not user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User ID is required")
    return user_id


@router.get("/sessions", response_model=list[ChatSession])
async def list_sessions(
    user_id: str | None = Query(default=None, alias="userId"),
    history: ChatHistoryService = Depends(get_history_service),
) -> list[ChatSession]:
    """Get all chat sessions for a user, most recently updated first."""
    return await history.get_all_sessions_with_details(_require_user_id(user_id))


@router.get("/sessions/{session_id}", response_model=ChatSession)
async def get_session(
    session_id: str,
    user_id: str | None = Query(default=None, alias="userId"),
    history: ChatHistoryService = Depends(get_history_service),
) -> ChatSession:
    """Get a specific chat session."""
    session = await history.get_session(_require_user_id(user_id), session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat session not found")
    return session


@router.post("/sessions", response_model=ChatSession, status_code=status.HTTP_201_CREATED)
async def create_session(
    body: CreateChatSessionRequest,
    history: ChatHistoryService = Depends(get_history_service),
) -> ChatSession:
    """Create a new chat session."""
    return await history.create_session(body.user_id, body.session_id, body.title, body.config)


@router.post("/sessions/{session_id}/messages", response_model=ChatSession)
async def add_message(
    session_id: str,
    body: AddMessageRequest,
    history: ChatHistoryService = Depends(get_history_service),
) -> ChatSession:
    """Add a message to a chat session."""
    return await history.add_message(body.user_id, session_id, body.message)


@router.put("/sessions/{session_id}/title", response_model=ChatSession)
async def update_title(
    session_id: str,
    body: UpdateTitleRequest,
    history: ChatHistoryService = Depends(get_history_service),
) -> ChatSession:
    """Update a chat session title."""
    return await history.update_title(body.user_id, session_id, body.title)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    user_id: str | None = Query(default=None, alias="userId"),
    history: ChatHistoryService = Depends(get_history_service),
) -> Response:
    """Delete a chat session."""
    await history.delete_session(_require_user_id(user_id), session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/generate-title", response_model=TitleResponse)
async def generate_title(
    body: GenerateTitleRequest,
    history: ChatHistoryService = Depends(get_history_service),
    titles: TitleGenerator = Depends(get_title_generator),
) -> TitleResponse:
    """
    Generate a title for a chat session from its first message.

    A model-generated title is stored on the session. If the model fails, or the
    session cannot be updated, a title cut from the message is returned instead
    and nothing is stored.
    """
    title, generated = await titles.generate_or_fallback(body.first_message)
    if not generated:
        return TitleResponse(title=title)

    try:
        await history.update_title(body.user_id, body.session_id, title)
    except SessionNotFound as e:
        logger.warning(f"Could not store generated title: {e}")
        return TitleResponse(title=fallback_title(body.first_message))

    return TitleResponse(title=title)
