"""
LLM Orchestration Layer.

Manages interactions with LLM APIs (Gemini, GPT, Claude, local models via
LiteLLM), conversation state per session, and the single tool-call round trip
through an MCP provider.

    HTTP request / CLI
          ↓
    ChatOrchestrator.ask_model() / ask_with_tools()
          ↓                         ↓
    ModelGateway.generate()    MCPToolProvider (per call)
          ↓
    ChatAnswer  →  caller
"""

from supportbot.llm.gateway import ModelGateway
from supportbot.llm.models import (
    ChatAnswer,
    EmptyReply,
    FunctionCall,
    FunctionCallReply,
    GenerationResult,
    Role,
    TextReply,
    Turn,
)
from supportbot.llm.orchestrator import (
    NO_FUNCTION_CALL_TEXT,
    NO_RESPONSE_TEXT,
    ChatOrchestrator,
)

__all__ = [
    "ChatAnswer",
    "ChatOrchestrator",
    "EmptyReply",
    "FunctionCall",
    "FunctionCallReply",
    "GenerationResult",
    "ModelGateway",
    "NO_FUNCTION_CALL_TEXT",
    "NO_RESPONSE_TEXT",
    "Role",
    "TextReply",
    "Turn",
]
