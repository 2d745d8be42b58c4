"""HTTP API for SupportBot."""

from supportbot.api.app import create_app

__all__ = ["create_app"]
