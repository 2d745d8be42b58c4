"""
MCP-based tool provider.

Spawns an MCP server as a subprocess and talks JSON-RPC to it over stdio.
One instance owns exactly one server process; it is created per orchestrated
call and closed when that call finishes.
"""

from contextlib import AsyncExitStack
from datetime import timedelta
from typing import Any

from mcp import ClientSession
from mcp.client.stdio import StdioServerParameters, stdio_client
from mcp.types import Implementation

from supportbot import __version__
from supportbot.config.logging import get_logger
from supportbot.config.settings import MCPSettings
from supportbot.errors import ToolExecutionError, ToolProviderUnavailable
from supportbot.tools.base import ToolDescriptor, ToolProvider

logger = get_logger(__name__)

NO_RESULT_TEXT = "No result returned from MCP tool."


class MCPToolProvider(ToolProvider):
    """
    Tool provider backed by an MCP server subprocess.

    The timeout bounds every request made over the session, the initialize
    handshake included, so an unresponsive server fails fast instead of
    hanging the conversation.

    Args:
        command: Executable that starts the MCP server (e.g. "npx")
        args: Arguments for the command
        timeout: Seconds to wait for any single response from the server
        client_name: Name announced to the server during the handshake
        env: Environment for the subprocess (None means MCP's default environment)
    """

    def __init__(
        self,
        command: str,
        args: list[str] | None = None,
        timeout: float = 300.0,
        client_name: str = "katalon-support-bot",
        env: dict[str, str] | None = None,
    ):
        self._command = command
        self._args = list(args or [])
        self._timeout = timeout
        self._client_name = client_name
        self._env = env
        self._exit_stack: AsyncExitStack | None = None
        self._session: ClientSession | None = None

    @classmethod
    def from_settings(cls, settings: MCPSettings) -> "MCPToolProvider":
        """Build a provider from MCP settings."""
        return cls(
            command=settings.command,
            args=settings.args,
            timeout=settings.timeout_seconds,
            client_name=settings.client_name,
        )

    @property
    def connected(self) -> bool:
        return self._session is not None

    async def connect(self) -> None:
        """Start the MCP server subprocess and perform the initialize handshake."""
        if self.connected:
            return

        server_params = StdioServerParameters(
            command=self._command,
            args=self._args,
            env=self._env,
        )
        client_info = Implementation(name=self._client_name, version=__version__)

        # Anything that escapes this block, cancellation included, unwinds the
        # half-open transport; only a completed handshake keeps the stack
        async with AsyncExitStack() as stack:
            try:
                read_stream, write_stream = await stack.enter_async_context(
                    stdio_client(server_params)
                )
                session = await stack.enter_async_context(
                    ClientSession(
                        read_stream,
                        write_stream,
                        read_timeout_seconds=timedelta(seconds=self._timeout),
                        client_info=client_info,
                    )
                )
                await session.initialize()
            except Exception as e:
                logger.error(
                    f"Error creating MCP client ({self._command} {' '.join(self._args)}): {e}",
                    exc_info=True,
                )
                raise ToolProviderUnavailable(f"Could not connect to MCP server: {e}") from e

            self._exit_stack = stack.pop_all()

        self._session = session
        logger.debug(f"Connected to MCP server: {self._command} {' '.join(self._args)}")

    async def close(self) -> None:
        """Close the session and terminate the server subprocess."""
        if self._exit_stack is None:
            return  # Already closed or never connected

        stack = self._exit_stack
        self._exit_stack = None
        self._session = None
        await stack.aclose()
        logger.debug("MCP server connection closed")

    async def list_tools(self) -> list[ToolDescriptor]:
        """List the tools published by the MCP server."""
        session = self._require_session()

        try:
            result = await session.list_tools()
        except Exception as e:
            logger.error(f"Error getting MCP tools: {e}", exc_info=True)
            raise ToolProviderUnavailable(f"Could not list MCP tools: {e}") from e

        raw_tools = getattr(result, "tools", None)
        if not isinstance(raw_tools, list):
            logger.warning("MCP server returned a malformed tool catalog; using no tools")
            return []

        tools = []
        for tool in raw_tools:
            name = getattr(tool, "name", None)
            if not isinstance(name, str) or not name:
                logger.warning(f"Skipping MCP tool without a name: {tool!r}")
                continue
            schema = getattr(tool, "inputSchema", None)
            tools.append(
                ToolDescriptor(
                    name=name,
                    description=getattr(tool, "description", None) or "",
                    parameters=schema if isinstance(schema, dict) else {},
                )
            )

        logger.debug(f"MCP server offers {len(tools)} tool(s)")
        return tools

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """
        Call a tool on the MCP server.

        Returns the text of the first text-bearing content block. Failures come
        back as "Error calling tool <name>: <error>" instead of being raised.
        """
        session = self._require_session()

        try:
            return await self._invoke(session, name, arguments)
        except ToolExecutionError as e:
            logger.warning(f"Tool '{name}' failed: {e}")
            return e.as_answer()

    async def _invoke(self, session: ClientSession, name: str, arguments: dict[str, Any]) -> str:
        try:
            result = await session.call_tool(name, arguments)
        except Exception as e:
            raise ToolExecutionError(name, str(e)) from e

        if getattr(result, "isError", False):
            logger.warning(f"MCP tool '{name}' reported an error result")

        # MCP returns content as a list of blocks; only some of them carry text
        for content in getattr(result, "content", None) or []:
            text = getattr(content, "text", None)
            if isinstance(text, str) and text:
                return text

        return NO_RESULT_TEXT

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise RuntimeError("Tool provider not connected")
        return self._session
