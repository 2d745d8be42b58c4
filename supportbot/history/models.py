"""
Chat history records.

Field names are snake_case in Python and camelCase on the wire
(``is_user`` ↔ ``isUser``). Timestamps are epoch milliseconds.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Message(BaseModel):
    """One message shown in a chat session."""

    id: str = Field(description="Client-assigned message id")
    content: str = Field(description="Message text")
    is_user: bool = Field(description="True if the user wrote it, False for the bot")
    timestamp: int = Field(ge=0, description="Epoch milliseconds")

    model_config = _WIRE_CONFIG


class ChatConfig(BaseModel):
    """Model settings a chat session was created with."""

    model: str = Field(description="Model name, e.g. gemini-2.0-flash")
    mode: str = Field(description="Chat mode, e.g. standard")

    model_config = _WIRE_CONFIG


class ChatSession(BaseModel):
    """A stored chat session with its messages."""

    id: str
    title: str
    messages: list[Message] = Field(default_factory=list)
    config: ChatConfig
    created: int = Field(ge=0, description="Epoch milliseconds")
    updated: int = Field(ge=0, description="Epoch milliseconds")

    model_config = _WIRE_CONFIG
