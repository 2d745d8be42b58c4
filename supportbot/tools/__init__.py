"""
Tool Integration Layer.

Connects to external MCP tool providers, translates their tool catalogs into
the model's function-calling format, and executes the tool the model picks.
"""

from supportbot.tools.base import ToolDescriptor, ToolProvider
from supportbot.tools.mcp_client import MCPToolProvider
from supportbot.tools.schema import to_function_tool, translate_tool

__all__ = [
    "MCPToolProvider",
    "ToolDescriptor",
    "ToolProvider",
    "to_function_tool",
    "translate_tool",
]
