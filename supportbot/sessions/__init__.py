"""Per-session conversation state."""

from supportbot.sessions.store import Exchange, SessionStore

__all__ = ["Exchange", "SessionStore"]
