"""
In-process session store.

Maps a session id to its transcript for the lifetime of the process. Access is
serialized per session key with one asyncio.Lock per key; requests for
different sessions never wait on each other.

Persistence and expiry are not handled here. That is the history cache's job
(see supportbot.history).
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from supportbot.llm.models import Turn


class Exchange:
    """
    Working transcript for one question/answer exchange.

    Created by SessionStore.exchange(). Turns added here become visible in the
    store only when the exchange finishes without an error.
    """

    def __init__(self, session_id: str, transcript: list[Turn]):
        self.session_id = session_id
        self._transcript = transcript

    @property
    def transcript(self) -> list[Turn]:
        """Snapshot of the working transcript."""
        return list(self._transcript)

    def add(self, turn: Turn) -> None:
        self._transcript.append(turn)


class SessionStore:
    """
    Process-wide mapping from session id to an ordered transcript.

    Example::

        store = SessionStore()
        async with store.exchange("abc") as exchange:
            exchange.add(Turn.from_user("Hi"))
            exchange.add(Turn.from_model("Hello!"))
    """

    def __init__(self) -> None:
        self._transcripts: dict[str, list[Turn]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    @asynccontextmanager
    async def _hold(self, session_id: str) -> AsyncIterator[None]:
        """
        Hold the session's lock.

        A lock lives only while some task holds or waits for it, or while the
        session has a transcript, so removed and never-stored sessions leave
        nothing behind.
        """
        # No await between lookup and insert, so this is atomic on the event loop
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        self._holders[session_id] = self._holders.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[session_id] -= 1
            if not self._holders[session_id]:
                del self._holders[session_id]
                if session_id not in self._transcripts:
                    del self._locks[session_id]

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._transcripts

    def __len__(self) -> int:
        return len(self._transcripts)

    async def get(self, session_id: str) -> list[Turn]:
        """Return a copy of the session's transcript, or an empty list if unseen."""
        async with self._hold(session_id):
            return list(self._transcripts.get(session_id, []))

    async def replace(self, session_id: str, transcript: Iterable[Turn]) -> None:
        """Overwrite the session's transcript."""
        async with self._hold(session_id):
            self._transcripts[session_id] = list(transcript)

    async def append(self, session_id: str, turn: Turn) -> None:
        """Add one turn to the end of the transcript, creating the session if needed."""
        async with self._hold(session_id):
            self._transcripts.setdefault(session_id, []).append(turn)

    async def remove(self, session_id: str) -> bool:
        """Forget a session. Returns False if it did not exist."""
        async with self._hold(session_id):
            return self._transcripts.pop(session_id, None) is not None

    @asynccontextmanager
    async def exchange(
        self,
        session_id: str,
        history: Iterable[Turn] | None = None,
    ) -> AsyncIterator[Exchange]:
        """
        Hold the session for one exchange and commit it on success.

        The working transcript starts from ``history`` when given (replacing the
        stored transcript), otherwise from the stored one. If the block raises or
        is cancelled nothing is written back, so the stored transcript never ends
        with a user turn that has no answer.
        """
        async with self._hold(session_id):
            if history is not None:
                working = list(history)
            else:
                working = list(self._transcripts.get(session_id, []))

            exchange = Exchange(session_id, working)
            yield exchange
            self._transcripts[session_id] = exchange.transcript
