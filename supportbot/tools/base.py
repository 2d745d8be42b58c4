"""
Base classes for tool providers.

Provides the abstract interface the orchestrator uses to talk to an external
tool-execution process, and the descriptor type a provider publishes for each
of its tools.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ToolDescriptor(BaseModel):
    """
    A tool as published by a provider.

    ``parameters`` is the provider's JSON schema for the tool's arguments. Before
    it reaches the model it goes through ``translate_tool`` to drop the
    transport-only keys.
    """

    name: str = Field(min_length=1, description="Tool name the model must use to call it")
    description: str = Field(default="", description="Human-readable tool description")
    parameters: dict[str, Any] = Field(
        default_factory=dict, description="JSON schema of the tool's arguments"
    )

    model_config = ConfigDict(frozen=True)


class ToolProvider(ABC):
    """
    Abstract base class for tool providers.

    A provider owns one connection to an external tool process. It is meant to
    be used as an async context manager so the connection is always released:

        async with MCPToolProvider(...) as provider:
            tools = await provider.list_tools()
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Start the provider and perform the handshake.

        Raises:
            ToolProviderUnavailable: If the provider cannot be started or does not
                answer the handshake in time
        """

    @abstractmethod
    async def close(self) -> None:
        """
        Release the connection and terminate the provider process.

        Safe to call more than once, and before connect().
        """

    @abstractmethod
    async def list_tools(self) -> list[ToolDescriptor]:
        """
        List the provider's tool catalog.

        Returns:
            Tool descriptors; an empty or malformed catalog yields an empty list.

        Raises:
            ToolProviderUnavailable: If the catalog request itself fails
        """

    @abstractmethod
    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """
        Call a tool and return its textual result.

        Tool failures are returned as an error message rather than raised, so the
        caller can still answer the user.
        """

    async def __aenter__(self):
        """Context manager entry - connect to the provider."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - close the provider."""
        await self.close()
        return False
