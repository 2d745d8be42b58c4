"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from supportbot.config.settings import (
    DEFAULT_SYSTEM_INSTRUCTION,
    HistorySettings,
    LLMSettings,
    MCPSettings,
    Settings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "LLM_API_KEY", "LLM_MODEL", "MCP_ARGS", "MCP_COMMAND", "MCP_TIMEOUT_MS",
        "LOG_LEVEL", "ENVIRONMENT",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:

    def test_llm_defaults(self):
        settings = LLMSettings()

        assert settings.model == "gemini/gemini-2.0-flash"
        assert settings.max_tokens == 4096
        assert settings.temperature == 0.7
        assert settings.top_k == 40
        assert settings.top_p == 0.95
        assert settings.request_timeout is None
        assert settings.default_system_instruction == DEFAULT_SYSTEM_INSTRUCTION

    def test_mcp_defaults(self):
        settings = MCPSettings()

        assert settings.command == "npx"
        assert settings.args[0] == "mcp-remote"
        assert settings.timeout_ms == 300000
        assert settings.timeout_seconds == 300.0

    def test_history_ttl_is_one_week(self):
        assert HistorySettings().ttl_seconds == 604800


class TestEnvironment:

    def test_mcp_args_split_on_spaces(self, monkeypatch):
        monkeypatch.setenv("MCP_ARGS", "mcp-remote  https://docs.example/sse")

        assert MCPSettings().args == ["mcp-remote", "https://docs.example/sse"]

    def test_mcp_args_list_passed_through(self):
        assert MCPSettings(args=["server.js", "--stdio"]).args == ["server.js", "--stdio"]

    def test_llm_values_from_env(self, monkeypatch):
        monkeypatch.setenv("LLM_API_KEY", "secret")
        monkeypatch.setenv("LLM_MODEL", "openai/gpt-4o")

        settings = LLMSettings()

        assert settings.api_key == "secret"
        assert settings.model == "openai/gpt-4o"

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("LOG_LEVEL=DEBUG\nENVIRONMENT=production\n")

        settings = Settings(_env_file=env_file)

        assert settings.log_level == "DEBUG"
        assert settings.environment == "production"

    @pytest.mark.parametrize("timeout_ms", [0, -5])
    def test_rejects_non_positive_timeout(self, timeout_ms):
        with pytest.raises(ValidationError):
            MCPSettings(timeout_ms=timeout_ms)
