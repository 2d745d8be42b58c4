"""
Pydantic models for API requests and responses.

Request bodies use camelCase on the wire (``sessionId``, ``systemInstruction``)
and accept snake_case too.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from supportbot.history.models import ChatConfig, Message
from supportbot.llm.models import Role, Turn

_WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatPart(BaseModel):
    """One part of a chat history item."""

    text: str = Field(description="The text content of a chat message part")


class ChatHistoryItem(BaseModel):
    """A previous message supplied by the caller."""

    role: Role = Field(description="The role of the message sender")
    parts: list[ChatPart] = Field(description="The parts that make up the message content")

    def to_turn(self) -> Turn:
        return Turn(role=self.role, text="\n".join(part.text for part in self.parts))


class AskRequest(BaseModel):
    """Request body for both ask endpoints."""

    session_id: str = Field(min_length=1, description="Unique identifier for the chat session")
    message: str = Field(min_length=1, description="The current message from the user")
    system_instruction: str | None = Field(
        default=None,
        description="System instructions to guide the AI model response",
    )
    history: list[ChatHistoryItem] | None = Field(
        default=None,
        description="Previous conversation history. Replaces the stored session transcript.",
    )

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "sessionId": "123e4567-e89b-12d3-a456-426614174000",
                    "message": "How do I set up a test case in Katalon Studio?",
                    "systemInstruction": "Provide concise, accurate responses about Katalon products.",
                }
            ]
        },
    )

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def history_turns(self) -> list[Turn] | None:
        if self.history is None:
            return None
        return [item.to_turn() for item in self.history]


class AskResponse(BaseModel):
    """Response body for both ask endpoints."""

    answer: str


class CreateChatSessionRequest(BaseModel):
    user_id: str = Field(min_length=1, description="User identifier")
    session_id: str = Field(min_length=1, description="Session identifier")
    title: str = Field(min_length=1, description="Chat session title")
    config: ChatConfig = Field(description="Chat configuration")

    model_config = _WIRE_CONFIG


class AddMessageRequest(BaseModel):
    user_id: str = Field(min_length=1, description="User identifier")
    message: Message = Field(description="Message to add to the chat session")

    model_config = _WIRE_CONFIG


class UpdateTitleRequest(BaseModel):
    user_id: str = Field(min_length=1, description="User identifier")
    title: str = Field(min_length=1, description="New chat session title")

    model_config = _WIRE_CONFIG


class GenerateTitleRequest(BaseModel):
    user_id: str = Field(min_length=1, description="User identifier")
    session_id: str = Field(min_length=1, description="Session identifier")
    first_message: str = Field(
        min_length=1, description="First message content to generate title from"
    )

    model_config = _WIRE_CONFIG


class TitleResponse(BaseModel):
    title: str


class HealthResponse(BaseModel):
    status: str = Field(description="Service status")
    version: str = Field(description="Service version")
    model: str | None = Field(default=None, description="Configured LLM model")
