"""
Chat history service.

Stores each user's chat sessions in a HistoryCache under two kinds of keys:

    user:<user_id>:chats                 → list of session ids (the index)
    user:<user_id>:chat:<session_id>     → the ChatSession record
"""

from __future__ import annotations

import asyncio
import time

from supportbot.config.logging import get_logger
from supportbot.errors import SessionNotFound
from supportbot.history.cache import HistoryCache
from supportbot.history.models import ChatConfig, ChatSession, Message

logger = get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class ChatHistoryService:
    """
    CRUD over per-user chat sessions.

    Mutations are serialized with a single lock because each one is a
    read-modify-write of the user's index or session record.

    Args:
        cache: Backing key-value store
    """

    def __init__(self, cache: HistoryCache):
        self._cache = cache
        self._lock = asyncio.Lock()

    @staticmethod
    def _chats_key(user_id: str) -> str:
        return f"user:{user_id}:chats"

    @staticmethod
    def _session_key(user_id: str, session_id: str) -> str:
        return f"user:{user_id}:chat:{session_id}"

    async def get_all_sessions(self, user_id: str) -> list[str]:
        """Return the ids of all sessions indexed for a user."""
        return list(await self._cache.get(self._chats_key(user_id)) or [])

    async def get_session(self, user_id: str, session_id: str) -> ChatSession | None:
        """Return one session, or None if it does not exist (or expired)."""
        raw = await self._cache.get(self._session_key(user_id, session_id))
        if raw is None:
            return None
        return ChatSession.model_validate(raw)

    async def get_all_sessions_with_details(self, user_id: str) -> list[ChatSession]:
        """Return all of a user's sessions, most recently updated first."""
        sessions = []
        for session_id in await self.get_all_sessions(user_id):
            session = await self.get_session(user_id, session_id)
            if session is not None:
                sessions.append(session)
        return sorted(sessions, key=lambda s: s.updated, reverse=True)

    async def create_session(
        self,
        user_id: str,
        session_id: str,
        title: str,
        config: ChatConfig,
    ) -> ChatSession:
        """Create (or reset) a session and add it to the user's index."""
        now = _now_ms()
        session = ChatSession(
            id=session_id,
            title=title,
            messages=[],
            config=config,
            created=now,
            updated=now,
        )

        async with self._lock:
            await self._save(user_id, session)
            session_ids = await self.get_all_sessions(user_id)
            if session_id not in session_ids:
                session_ids.append(session_id)
                await self._cache.set(self._chats_key(user_id), session_ids)

        logger.info(f"Created chat session {session_id} for user {user_id}")
        return session

    async def add_message(self, user_id: str, session_id: str, message: Message) -> ChatSession:
        """
        Append a message to a session.

        Raises:
            SessionNotFound: If the session does not exist
        """
        async with self._lock:
            session = await self._require(user_id, session_id)
            session.messages.append(message)
            session.updated = _now_ms()
            await self._save(user_id, session)
        return session

    async def update_title(self, user_id: str, session_id: str, title: str) -> ChatSession:
        """
        Rename a session.

        Raises:
            SessionNotFound: If the session does not exist
        """
        async with self._lock:
            session = await self._require(user_id, session_id)
            session.title = title
            session.updated = _now_ms()
            await self._save(user_id, session)
        return session

    async def delete_session(self, user_id: str, session_id: str) -> None:
        """Remove a session and drop it from the user's index. Missing sessions are ignored."""
        async with self._lock:
            session_ids = await self.get_all_sessions(user_id)
            remaining = [sid for sid in session_ids if sid != session_id]
            await self._cache.set(self._chats_key(user_id), remaining)
            await self._cache.delete(self._session_key(user_id, session_id))
        logger.info(f"Deleted chat session {session_id} for user {user_id}")

    async def _require(self, user_id: str, session_id: str) -> ChatSession:
        session = await self.get_session(user_id, session_id)
        if session is None:
            raise SessionNotFound(f"Chat session not found: {session_id}")
        return session

    async def _save(self, user_id: str, session: ChatSession) -> None:
        await self._cache.set(
            self._session_key(user_id, session.id),
            session.model_dump(mode="json", by_alias=True),
        )
