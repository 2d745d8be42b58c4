"""
Model gateway: one generation call through LiteLLM.

Adapts a transcript, a tool list and an optional system instruction into a
single ``acompletion`` request and collapses the reply into a GenerationResult.

Design decisions:
- Uses LiteLLM for provider abstraction, so Gemini, OpenAI, Anthropic or a
  local Ollama model are a config string away.
- The ``tools`` keyword is omitted entirely when there are no tools; some
  backends reject an empty-but-present tools array.
- No retries here. A failed call surfaces as GenerationFailed and the caller
  decides what to do.
"""

from __future__ import annotations

import json
from typing import Any

from litellm import acompletion
from pydantic import ValidationError

from supportbot.config.logging import get_logger
from supportbot.config.settings import LLMSettings
from supportbot.errors import ConfigurationError, GenerationFailed
from supportbot.llm.models import (
    FunctionCall,
    GenerationResult,
    Role,
    Turn,
    make_generation_result,
)
from supportbot.tools.base import ToolDescriptor
from supportbot.tools.schema import to_function_tool

logger = get_logger(__name__)

_ROLE_TO_MESSAGE_ROLE = {
    Role.USER: "user",
    Role.MODEL: "assistant",
}


class ModelGateway:
    """
    Sends one conversation to the model and interprets the reply.

    Args:
        settings: LLM configuration (model, sampling parameters, api_key)

    Raises:
        ConfigurationError: If no API key is configured
    """

    def __init__(self, settings: LLMSettings):
        if not settings.api_key:
            raise ConfigurationError(
                "LLM API key not configured. Set LLM_API_KEY in your environment."
            )
        self._settings = settings

    @property
    def model(self) -> str:
        return self._settings.model

    def _build_messages(
        self,
        transcript: list[Turn],
        system_instruction: str | None,
    ) -> list[dict[str, Any]]:
        instruction = system_instruction
        if not instruction or not instruction.strip():
            instruction = self._settings.default_system_instruction

        messages: list[dict[str, Any]] = [{"role": "system", "content": instruction}]
        messages.extend(
            {"role": _ROLE_TO_MESSAGE_ROLE[turn.role], "content": turn.text}
            for turn in transcript
        )
        return messages

    def _build_call_kwargs(
        self,
        transcript: list[Turn],
        tools: list[ToolDescriptor],
        system_instruction: str | None,
    ) -> dict[str, Any]:
        call_kwargs: dict[str, Any] = {
            "model": self._settings.model,
            "messages": self._build_messages(transcript, system_instruction),
            "max_tokens": self._settings.max_tokens,
            "temperature": self._settings.temperature,
            "top_k": self._settings.top_k,
            "top_p": self._settings.top_p,
            "api_key": self._settings.api_key,
        }
        if self._settings.request_timeout is not None:
            call_kwargs["timeout"] = self._settings.request_timeout

        # Only add tool configuration if there are tools
        if tools:
            call_kwargs["tools"] = [to_function_tool(tool) for tool in tools]

        return call_kwargs

    async def generate(
        self,
        transcript: list[Turn],
        tools: list[ToolDescriptor],
        system_instruction: str | None = None,
    ) -> GenerationResult:
        """
        Run one generation over the transcript.

        Args:
            transcript: Conversation so far, oldest turn first
            tools: Translated tool descriptors the model may call (may be empty)
            system_instruction: Overrides the configured default when non-blank

        Returns:
            TextReply, FunctionCallReply or EmptyReply

        Raises:
            GenerationFailed: If the API call fails or the reply is malformed
        """
        call_kwargs = self._build_call_kwargs(transcript, tools, system_instruction)

        logger.debug(
            f"Generating with {self._settings.model}: {len(transcript)} turn(s), "
            f"{len(tools)} tool(s)"
        )
        try:
            response = await acompletion(**call_kwargs)
        except Exception as e:
            raise GenerationFailed(f"LLM API call failed: {e}") from e

        try:
            return self._parse_response(response)
        except (AttributeError, TypeError, ValidationError) as e:
            raise GenerationFailed(f"Malformed LLM response: {e}") from e

    def _parse_response(self, response: Any) -> GenerationResult:
        choices = getattr(response, "choices", None)
        if not choices:
            raise GenerationFailed("LLM response contained no choices")

        message = choices[0].message
        function_calls = [
            self._parse_tool_call(tool_call)
            for tool_call in (getattr(message, "tool_calls", None) or [])
        ]
        text = message.content if isinstance(message.content, str) else None

        return make_generation_result(text, function_calls)

    @staticmethod
    def _parse_tool_call(tool_call: Any) -> FunctionCall:
        name = tool_call.function.name
        raw_arguments = tool_call.function.arguments or "{}"
        try:
            args = json.loads(raw_arguments) if isinstance(raw_arguments, str) else raw_arguments
        except json.JSONDecodeError as e:
            raise GenerationFailed(
                f"Malformed arguments for function call '{name}': {e}"
            ) from e
        if not isinstance(args, dict):
            raise GenerationFailed(
                f"Function call '{name}' arguments must be an object, got {type(args).__name__}"
            )
        return FunctionCall(name=name, args=args)
