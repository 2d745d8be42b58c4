"""
Chat history persistence.

A TTL key-value cache plus the per-user chat session records stored in it.
Independent from the in-process SessionStore the orchestrator uses.
"""

from supportbot.history.cache import HistoryCache, InMemoryHistoryCache
from supportbot.history.models import ChatConfig, ChatSession, Message
from supportbot.history.service import ChatHistoryService
from supportbot.history.titles import TitleGenerator, fallback_title

__all__ = [
    "ChatConfig",
    "ChatHistoryService",
    "ChatSession",
    "HistoryCache",
    "InMemoryHistoryCache",
    "Message",
    "TitleGenerator",
    "fallback_title",
]
