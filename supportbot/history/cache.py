"""
Key-value cache with TTL for chat history.

HistoryCache is the contract the chat history service depends on. The
in-memory implementation keeps entries for the lifetime of the process, each
one expiring ``ttl`` seconds after it was last written.
"""

from __future__ import annotations

import copy
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any


class HistoryCache(ABC):
    """Abstract async key-value store with per-entry expiry."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the stored value, or None if missing or expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value. ``ttl`` overrides the default lifetime in seconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""


class InMemoryHistoryCache(HistoryCache):
    """
    Process-local HistoryCache.

    Values are deep-copied on the way in and out so callers can never mutate
    what is stored.

    Args:
        default_ttl: Lifetime of an entry in seconds
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(
        self,
        default_ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def __len__(self) -> int:
        self._purge_expired()
        return len(self._entries)

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return copy.deepcopy(value)

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        lifetime = self._default_ttl if ttl is None else ttl
        self._entries[key] = (self._clock() + lifetime, copy.deepcopy(value))

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
