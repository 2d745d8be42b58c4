"""
Exception hierarchy for SupportBot.

Everything raised on purpose by the service derives from SupportBotError so the
HTTP layer and the CLI can tell domain failures apart from programming errors.
"""


class SupportBotError(Exception):
    """Base class for all SupportBot errors."""


class ConfigurationError(SupportBotError):
    """Required configuration is missing or invalid. Fatal at startup."""


class ToolProviderUnavailable(SupportBotError):
    """The MCP tool provider could not be started, reached, or listed."""


class GenerationFailed(SupportBotError):
    """The model call failed or returned a response we could not interpret."""


class ToolExecutionError(SupportBotError):
    """
    A tool call failed.

    Never escapes the tool provider client: it is converted into a textual
    answer so the conversation can still complete.
    """

    def __init__(self, tool_name: str, message: str):
        super().__init__(message)
        self.tool_name = tool_name

    def as_answer(self) -> str:
        return f"Error calling tool {self.tool_name}: {self}"


class SessionNotFound(SupportBotError):
    """A chat-history session does not exist for the given user."""
