"""
SupportBot - customer support chat service backed by an LLM and MCP tools.

This package answers end-user chat turns either directly with a language model
or with a model augmented by tools discovered from an external MCP server.
"""

__version__ = "0.1.0"
