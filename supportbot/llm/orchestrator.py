"""
Chat orchestrator: resolves one user turn into one answer.

This module sits between the HTTP layer and the two external services the
answer depends on: the model (via ModelGateway) and the MCP tool provider.

Data flow (tool-augmented mode):
    ask_with_tools(session_id, message)
        → MCPToolProvider connect + list_tools     (scoped: always closed)
        → translate_tool() for each tool
        → SessionStore.exchange()                  (user turn added)
        → ModelGateway.generate(transcript, tools)
        → first function call → provider.call_tool()   or   model text
        → answer turn added, exchange committed
        → provider closed

Design decisions:
- One function call per turn. When the model proposes several, only the first
  is executed. Chaining calls would need a bounded loop; it is not done here.
- Tool failures come back from the provider as error text and become the
  answer, so a broken tool never fails the request.
- A new provider is created for every call through the factory. No pooling.
- The session exchange only commits when the answer is ready, so a failed
  request never leaves a user turn without its answer.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from supportbot.config.logging import get_logger
from supportbot.errors import ToolProviderUnavailable
from supportbot.llm.gateway import ModelGateway
from supportbot.llm.models import (
    ChatAnswer,
    FunctionCallReply,
    GenerationResult,
    TextReply,
    Turn,
)
from supportbot.sessions.store import SessionStore
from supportbot.tools.base import ToolDescriptor, ToolProvider
from supportbot.tools.schema import translate_tool

logger = get_logger(__name__)

NO_RESPONSE_TEXT = "No response generated."
NO_FUNCTION_CALL_TEXT = "No function call found in the response."

ProviderFactory = Callable[[], ToolProvider]


class CallState(str, Enum):
    """Stages of one orchestrated call, used for tracing."""

    IDLE = "idle"
    CONNECTING = "connecting"
    LISTING_TOOLS = "listing-tools"
    GENERATING = "generating"
    RESOLVING_CALL = "resolving-call"
    RESOLVING_TEXT = "resolving-text"
    CLOSING = "closing"
    DONE = "done"
    FAILED = "failed"


class ChatOrchestrator:
    """
    Answers chat turns directly with the model or with MCP tools.

    Args:
        gateway: Model gateway used for every generation
        sessions: Store holding each session's transcript
        provider_factory: Creates a fresh, unconnected tool provider per call.
            None disables tool-augmented mode.
    """

    def __init__(
        self,
        gateway: ModelGateway,
        sessions: SessionStore,
        provider_factory: ProviderFactory | None = None,
    ):
        self._gateway = gateway
        self._sessions = sessions
        self._provider_factory = provider_factory

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    @staticmethod
    def _trace(session_id: str, state: CallState) -> None:
        logger.debug(f"[session {session_id}] {state.value}")

    @staticmethod
    def _validate_message(message: str) -> str:
        if not message or not message.strip():
            raise ValueError("Message cannot be empty")
        return message

    async def ask_model(
        self,
        session_id: str,
        message: str,
        system_instruction: str | None = None,
        history: list[Turn] | None = None,
    ) -> ChatAnswer:
        """
        Answer a message with the model alone (no tools).

        Args:
            session_id: Conversation key
            message: The user's message
            system_instruction: Optional override of the default instruction
            history: If given, replaces the session's transcript before answering

        Raises:
            ValueError: If message is empty
            GenerationFailed: If the model call fails
        """
        message = self._validate_message(message)

        try:
            async with self._sessions.exchange(session_id, history) as exchange:
                exchange.add(Turn.from_user(message))

                self._trace(session_id, CallState.GENERATING)
                result = await self._gateway.generate(exchange.transcript, [], system_instruction)

                self._trace(session_id, CallState.RESOLVING_TEXT)
                answer = result.text if isinstance(result, TextReply) else NO_RESPONSE_TEXT
                exchange.add(Turn.from_model(answer))
        except Exception as e:
            self._trace(session_id, CallState.FAILED)
            logger.error(f"Error in ask_model: {e}", exc_info=True)
            raise

        self._trace(session_id, CallState.DONE)
        return ChatAnswer(answer=answer)

    async def ask_with_tools(
        self,
        session_id: str,
        message: str,
        system_instruction: str | None = None,
        history: list[Turn] | None = None,
    ) -> ChatAnswer:
        """
        Answer a message with the model plus the MCP provider's tools.

        The provider is connected for the duration of this call only and is
        closed on every exit path, including errors and cancellation.

        Args:
            session_id: Conversation key
            message: The user's message
            system_instruction: Optional override of the default instruction
            history: If given, replaces the session's transcript before answering

        Raises:
            ValueError: If message is empty
            ToolProviderUnavailable: If the provider cannot be reached or listed
            GenerationFailed: If the model call fails (after the provider is closed)
        """
        message = self._validate_message(message)
        if self._provider_factory is None:
            raise ToolProviderUnavailable("No tool provider configured")

        try:
            self._trace(session_id, CallState.CONNECTING)
            async with self._provider_factory() as provider:
                self._trace(session_id, CallState.LISTING_TOOLS)
                catalog = await provider.list_tools()
                tools = [translate_tool(tool) for tool in catalog]

                async with self._sessions.exchange(session_id, history) as exchange:
                    exchange.add(Turn.from_user(message))

                    self._trace(session_id, CallState.GENERATING)
                    result = await self._gateway.generate(
                        exchange.transcript, tools, system_instruction
                    )

                    answer = await self._resolve(session_id, provider, result, tools)
                    exchange.add(Turn.from_model(answer))

                self._trace(session_id, CallState.CLOSING)
        except Exception as e:
            self._trace(session_id, CallState.FAILED)
            logger.error(f"Error in ask_with_tools: {e}", exc_info=True)
            raise

        self._trace(session_id, CallState.DONE)
        return ChatAnswer(answer=answer)

    async def _resolve(
        self,
        session_id: str,
        provider: ToolProvider,
        result: GenerationResult,
        tools: list[ToolDescriptor],
    ) -> str:
        """Turn a generation result into the answer text."""
        if isinstance(result, FunctionCallReply):
            self._trace(session_id, CallState.RESOLVING_CALL)
            call = result.first
            if len(result.calls) > 1:
                logger.info(
                    f"Model proposed {len(result.calls)} function calls; "
                    f"executing only '{call.name}'"
                )
            if call.name not in {tool.name for tool in tools}:
                logger.warning(f"Model called unknown tool '{call.name}'")
                return NO_FUNCTION_CALL_TEXT
            logger.info(f"Calling tool '{call.name}'")
            return await provider.call_tool(call.name, call.args)

        self._trace(session_id, CallState.RESOLVING_TEXT)
        if isinstance(result, TextReply):
            return result.text
        return NO_FUNCTION_CALL_TEXT
