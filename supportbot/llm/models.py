"""
Data structures shared by the model gateway and the orchestrator.

- Turn: one immutable utterance in a transcript
- FunctionCall: a tool invocation proposed by the model
- GenerationResult: what one model call produced (text, function calls, or nothing)
- ChatAnswer: the answer returned for one user turn
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Who produced a turn."""

    USER = "user"
    MODEL = "model"


class Turn(BaseModel):
    """One utterance in a conversation. Immutable once created."""

    role: Role
    text: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_user(cls, text: str) -> Turn:
        return cls(role=Role.USER, text=text)

    @classmethod
    def from_model(cls, text: str) -> Turn:
        return cls(role=Role.MODEL, text=text)


Transcript = list[Turn]


class FunctionCall(BaseModel):
    """A function call proposed by the model."""

    name: str = Field(description="Name of the tool to call")
    args: dict[str, Any] = Field(default_factory=dict, description="Tool arguments")

    model_config = ConfigDict(frozen=True)


class TextReply(BaseModel):
    """The model answered with text."""

    kind: Literal["text"] = "text"
    text: str


class FunctionCallReply(BaseModel):
    """The model asked for one or more function calls."""

    kind: Literal["function_calls"] = "function_calls"
    calls: list[FunctionCall] = Field(min_length=1)

    @property
    def first(self) -> FunctionCall:
        return self.calls[0]


class EmptyReply(BaseModel):
    """The model returned neither text nor a function call."""

    kind: Literal["empty"] = "empty"


GenerationResult = Annotated[
    Union[TextReply, FunctionCallReply, EmptyReply],
    Field(discriminator="kind"),
]


def make_generation_result(
    text: str | None,
    function_calls: list[FunctionCall] | None,
) -> TextReply | FunctionCallReply | EmptyReply:
    """
    Collapse a raw model response into exactly one GenerationResult variant.

    Function calls take precedence over text when a backend returns both.
    """
    if function_calls:
        return FunctionCallReply(calls=function_calls)
    if text:
        return TextReply(text=text)
    return EmptyReply()


class ChatAnswer(BaseModel):
    """The answer produced for one user turn."""

    answer: str
