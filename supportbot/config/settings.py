"""
Application settings and configuration management.

Uses Pydantic Settings for validation and environment variable support.
"""

from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_SYSTEM_INSTRUCTION = (
    "You are a helpful customer support agent. Always be polite and concise."
)


class LLMSettings(BaseSettings):
    """LLM API configuration."""

    model: str = Field(
        default="gemini/gemini-2.0-flash",
        description="LiteLLM model string, e.g. 'gemini/gemini-2.0-flash', "
                    "'openai/gpt-4o', 'ollama/llama3'. The provider prefix tells LiteLLM "
                    "which API to route the request to.",
    )
    max_tokens: int = Field(default=4096, description="Maximum tokens in response")
    temperature: float = Field(default=0.7, description="Sampling temperature")
    top_k: int = Field(default=40, description="Top-k sampling cutoff")
    top_p: float = Field(default=0.95, description="Nucleus sampling cutoff")
    api_key: str = Field(default="", description="API key for the model's provider")
    request_timeout: float | None = Field(
        default=None,
        description="Seconds before a single model request is abandoned. None means "
                    "LiteLLM's own default.",
    )
    default_system_instruction: str = Field(
        default=DEFAULT_SYSTEM_INSTRUCTION,
        description="System instruction used when a request does not supply one",
    )

    model_config = SettingsConfigDict(env_prefix="LLM_")


class MCPSettings(BaseSettings):
    """MCP tool provider configuration."""

    command: str = Field(default="npx", description="Executable that starts the MCP server")
    args: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [
            "mcp-remote",
            "https://poc-docs-mcp-server.daohoangson.workers.dev/sse",
        ],
        description="Arguments for the MCP server command. "
                    "Set via MCP_ARGS='mcp-remote https://example.com/sse' (space separated).",
    )
    timeout_ms: int = Field(
        default=300000,
        gt=0,
        description="Milliseconds to wait for any single MCP response, handshake included",
    )
    client_name: str = Field(
        default="katalon-support-bot",
        description="Client name announced to the MCP server during the handshake",
    )

    model_config = SettingsConfigDict(env_prefix="MCP_")

    @field_validator("args", mode="before")
    @classmethod
    def split_args(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.split()
        return value

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


class HistorySettings(BaseSettings):
    """Chat history cache configuration."""

    ttl_seconds: int = Field(
        default=60 * 60 * 24 * 7,
        gt=0,
        description="How long chat history entries live in the cache (default: 7 days)",
    )

    model_config = SettingsConfigDict(env_prefix="HISTORY_")


class ServerSettings(BaseSettings):
    """HTTP server configuration."""

    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=3000, description="Port to listen on")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins. Set via SERVER_CORS_ORIGINS='[\"https://a.example\"]'",
    )

    model_config = SettingsConfigDict(env_prefix="SERVER_")


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: Literal["development", "production"] = Field(
        default="development", description="Deployment environment"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_file: Path | None = Field(default=None, description="Log file path")

    # Sub-configurations
    llm: LLMSettings = Field(default_factory=LLMSettings)
    mcp: MCPSettings = Field(default_factory=MCPSettings)
    history: HistorySettings = Field(default_factory=HistorySettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings from file and environment.

    Args:
        env_file: Path to .env file (optional)

    Returns:
        Loaded settings instance
    """
    global _settings
    if env_file:
        _settings = Settings(_env_file=env_file)
    else:
        _settings = Settings()
    return _settings
