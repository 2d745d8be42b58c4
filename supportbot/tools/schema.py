"""
Tool schema translation.

MCP servers publish JSON schemas that carry keys the model's function-calling
contract rejects or ignores. This module strips them and wraps the result in
the OpenAI-style tool envelope LiteLLM expects.
"""

from typing import Any

from supportbot.tools.base import ToolDescriptor

# Top-level schema keys that only make sense to the transport
TRANSPORT_ONLY_KEYS = frozenset({"additionalProperties", "$schema"})


def translate_tool(tool: ToolDescriptor) -> ToolDescriptor:
    """
    Produce the model-facing descriptor for a provider tool.

    Only the top level of ``parameters`` is filtered; nested schemas are passed
    through untouched. Translating an already translated tool returns an equal
    descriptor.
    """
    parameters = {
        key: value
        for key, value in tool.parameters.items()
        if key not in TRANSPORT_ONLY_KEYS
    }
    return ToolDescriptor(
        name=tool.name,
        description=tool.description,
        parameters=parameters,
    )


def to_function_tool(tool: ToolDescriptor) -> dict[str, Any]:
    """
    Wrap a translated descriptor in LiteLLM's tool format.

    LiteLLM uses the OpenAI tool format:
        {"type": "function", "function": {"name": ..., "description": ..., "parameters": ...}}
    """
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.parameters,
        },
    }
