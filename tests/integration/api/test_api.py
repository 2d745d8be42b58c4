"""
Integration tests for the HTTP API.

The whole app runs in-process through httpx's ASGI transport. Only the two
external boundaries are replaced: LiteLLM's acompletion and the MCP provider.
"""

import json
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from supportbot import __version__
from supportbot.api import create_app
from supportbot.config.settings import LLMSettings, Settings
from supportbot.errors import ToolProviderUnavailable
from supportbot.tools.base import ToolDescriptor, ToolProvider

pytestmark = pytest.mark.integration


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class StubProvider(ToolProvider):
    def __init__(self, tools=None, results=None, fail_connect=False):
        self.tools = tools or []
        self.results = results or {}
        self.fail_connect = fail_connect
        self.closed = 0

    async def connect(self) -> None:
        if self.fail_connect:
            raise ToolProviderUnavailable("spawn failed")

    async def close(self) -> None:
        self.closed += 1

    async def list_tools(self) -> list[ToolDescriptor]:
        return list(self.tools)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        return self.results[name]


def _text_response(text):
    choice = MagicMock()
    choice.message.content = text
    choice.message.tool_calls = None
    response = MagicMock()
    response.choices = [choice]
    return response


def _call_response(name, args):
    tool_call = MagicMock()
    tool_call.function.name = name
    tool_call.function.arguments = json.dumps(args)
    choice = MagicMock()
    choice.message.content = None
    choice.message.tool_calls = [tool_call]
    response = MagicMock()
    response.choices = [choice]
    return response


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def test_settings():
    return Settings(_env_file=None, llm=LLMSettings(api_key="test-key"))


@pytest.fixture
def provider():
    return StubProvider(
        tools=[
            ToolDescriptor(
                name="search_docs",
                description="Search the docs",
                parameters={"type": "object", "additionalProperties": False, "properties": {}},
            )
        ],
        results={"search_docs": "Docs result"},
    )


@pytest.fixture
def completion():
    with patch("supportbot.llm.gateway.acompletion") as mock_completion:
        mock_completion.return_value = _text_response("Start by...")
        yield mock_completion


@pytest_asyncio.fixture
async def async_client(test_settings, provider, completion):
    app = create_app(settings=test_settings)
    with patch("supportbot.api.app.MCPToolProvider") as mock_provider_cls:
        mock_provider_cls.from_settings.return_value = provider
        async with app.router.lifespan_context(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, async_client):
        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "version": __version__,
            "model": "gemini/gemini-2.0-flash",
        }


# ---------------------------------------------------------------------------
# Ask endpoints
# ---------------------------------------------------------------------------

class TestAskModel:

    @pytest.mark.asyncio
    async def test_answer(self, async_client, completion):
        response = await async_client.post(
            "/mcp/ask/model",
            json={"sessionId": "s1", "message": "How do I create a test case?"},
        )

        assert response.status_code == 200
        assert response.json() == {"answer": "Start by..."}
        assert "tools" not in completion.call_args.kwargs

    @pytest.mark.asyncio
    async def test_session_transcript_carries_over(self, async_client, completion):
        await async_client.post("/mcp/ask/model", json={"sessionId": "s1", "message": "first"})
        await async_client.post("/mcp/ask/model", json={"sessionId": "s1", "message": "second"})

        messages = completion.call_args.kwargs["messages"]
        assert [m["content"] for m in messages[1:]] == ["first", "Start by...", "second"]

    @pytest.mark.asyncio
    async def test_history_and_system_instruction(self, async_client, completion):
        response = await async_client.post(
            "/mcp/ask/model",
            json={
                "sessionId": "s1",
                "message": "And then?",
                "systemInstruction": "Be brief.",
                "history": [
                    {"role": "user", "parts": [{"text": "How do I"}, {"text": "record?"}]},
                    {"role": "model", "parts": [{"text": "Click Record."}]},
                ],
            },
        )

        assert response.status_code == 200
        messages = completion.call_args.kwargs["messages"]
        assert messages == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "How do I\nrecord?"},
            {"role": "assistant", "content": "Click Record."},
            {"role": "user", "content": "And then?"},
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"sessionId": "s1", "message": ""},
            {"sessionId": "s1", "message": "   "},
            {"sessionId": "s1"},
            {"message": "hi"},
            {"sessionId": "s1", "message": "hi", "history": [{"role": "system", "parts": []}]},
        ],
    )
    async def test_invalid_body_is_422(self, async_client, completion, body):
        response = await async_client.post("/mcp/ask/model", json=body)

        assert response.status_code == 422
        completion.assert_not_called()

    @pytest.mark.asyncio
    async def test_model_failure_is_502(self, async_client, completion):
        completion.side_effect = RuntimeError("quota exceeded")

        response = await async_client.post("/mcp/ask/model", json={"sessionId": "s1", "message": "hi"})

        assert response.status_code == 502
        assert response.json() == {"detail": "Model generation failed"}


class TestAskTools:

    @pytest.mark.asyncio
    async def test_tool_result_is_answer(self, async_client, completion, provider):
        completion.return_value = _call_response("search_docs", {"q": "test case"})

        response = await async_client.post(
            "/mcp/ask/tools",
            json={"sessionId": "s1", "message": "How do I create a test case?"},
        )

        assert response.status_code == 200
        assert response.json() == {"answer": "Docs result"}
        assert provider.closed == 1

        (tool,) = completion.call_args.kwargs["tools"]
        assert "additionalProperties" not in tool["function"]["parameters"]

    @pytest.mark.asyncio
    async def test_text_answer(self, async_client, provider):
        response = await async_client.post("/mcp/ask/tools", json={"sessionId": "s1", "message": "hi"})

        assert response.json() == {"answer": "Start by..."}
        assert provider.closed == 1

    @pytest.mark.asyncio
    async def test_provider_unavailable_is_503(self, async_client, completion, provider):
        provider.fail_connect = True

        response = await async_client.post("/mcp/ask/tools", json={"sessionId": "s1", "message": "hi"})

        assert response.status_code == 503
        assert response.json() == {"detail": "Tool provider unavailable"}
        completion.assert_not_called()

    @pytest.mark.asyncio
    async def test_model_failure_is_502_and_provider_closed(self, async_client, completion, provider):
        completion.side_effect = RuntimeError("boom")

        response = await async_client.post("/mcp/ask/tools", json={"sessionId": "s1", "message": "hi"})

        assert response.status_code == 502
        assert provider.closed == 1


# ---------------------------------------------------------------------------
# Chat history
# ---------------------------------------------------------------------------

SESSION_BODY = {
    "userId": "u1",
    "sessionId": "c1",
    "title": "New chat",
    "config": {"model": "gemini-2.0-flash", "mode": "standard"},
}


class TestChatHistory:

    @pytest.mark.asyncio
    async def test_create_and_get(self, async_client):
        created = await async_client.post("/chat-history/sessions", json=SESSION_BODY)

        assert created.status_code == 201
        assert created.json()["id"] == "c1"

        fetched = await async_client.get("/chat-history/sessions/c1", params={"userId": "u1"})
        assert fetched.status_code == 200
        assert fetched.json()["title"] == "New chat"

    @pytest.mark.asyncio
    async def test_list_sessions(self, async_client):
        await async_client.post("/chat-history/sessions", json=SESSION_BODY)

        response = await async_client.get("/chat-history/sessions", params={"userId": "u1"})

        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == ["c1"]

    @pytest.mark.asyncio
    async def test_user_id_required(self, async_client):
        response = await async_client.get("/chat-history/sessions")

        assert response.status_code == 400
        assert response.json() == {"detail": "User ID is required"}

    @pytest.mark.asyncio
    async def test_missing_session_is_404(self, async_client):
        response = await async_client.get("/chat-history/sessions/nope", params={"userId": "u1"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_add_message(self, async_client):
        await async_client.post("/chat-history/sessions", json=SESSION_BODY)

        response = await async_client.post(
            "/chat-history/sessions/c1/messages",
            json={
                "userId": "u1",
                "message": {"id": "m1", "content": "hi", "isUser": True, "timestamp": 1700000000000},
            },
        )

        assert response.status_code == 200
        assert response.json()["messages"] == [
            {"id": "m1", "content": "hi", "isUser": True, "timestamp": 1700000000000}
        ]

    @pytest.mark.asyncio
    async def test_add_message_to_missing_session_is_404(self, async_client):
        response = await async_client.post(
            "/chat-history/sessions/nope/messages",
            json={
                "userId": "u1",
                "message": {"id": "m1", "content": "hi", "isUser": True, "timestamp": 1},
            },
        )

        assert response.status_code == 404
        assert response.json() == {"detail": "Chat session not found"}

    @pytest.mark.asyncio
    async def test_update_title(self, async_client):
        await async_client.post("/chat-history/sessions", json=SESSION_BODY)

        response = await async_client.put(
            "/chat-history/sessions/c1/title", json={"userId": "u1", "title": "Recording"}
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Recording"

    @pytest.mark.asyncio
    async def test_delete(self, async_client):
        await async_client.post("/chat-history/sessions", json=SESSION_BODY)

        response = await async_client.delete("/chat-history/sessions/c1", params={"userId": "u1"})

        assert response.status_code == 204
        listed = await async_client.get("/chat-history/sessions", params={"userId": "u1"})
        assert listed.json() == []


class TestGenerateTitle:

    @pytest.mark.asyncio
    async def test_generated_title_is_stored(self, async_client, completion):
        await async_client.post("/chat-history/sessions", json=SESSION_BODY)
        completion.return_value = _text_response('"creating test cases"')

        response = await async_client.post(
            "/chat-history/generate-title",
            json={"userId": "u1", "sessionId": "c1", "firstMessage": "How do I create a test case?"},
        )

        assert response.json() == {"title": "Creating test cases"}
        fetched = await async_client.get("/chat-history/sessions/c1", params={"userId": "u1"})
        assert fetched.json()["title"] == "Creating test cases"

    @pytest.mark.asyncio
    async def test_model_failure_falls_back(self, async_client, completion):
        await async_client.post("/chat-history/sessions", json=SESSION_BODY)
        completion.side_effect = RuntimeError("quota")

        response = await async_client.post(
            "/chat-history/generate-title",
            json={"userId": "u1", "sessionId": "c1", "firstMessage": "Help! My tests fail"},
        )

        assert response.status_code == 200
        assert response.json() == {"title": "Help..."}
        fetched = await async_client.get("/chat-history/sessions/c1", params={"userId": "u1"})
        assert fetched.json()["title"] == "New chat"

    @pytest.mark.asyncio
    async def test_missing_session_falls_back(self, async_client, completion):
        completion.return_value = _text_response("Creating test cases")

        response = await async_client.post(
            "/chat-history/generate-title",
            json={"userId": "u1", "sessionId": "nope", "firstMessage": "Help! My tests fail"},
        )

        assert response.status_code == 200
        assert response.json() == {"title": "Help..."}


class TestStartup:

    @pytest.mark.asyncio
    async def test_missing_api_key_fails_startup(self):
        from supportbot.errors import ConfigurationError

        app = create_app(settings=Settings(_env_file=None, llm=LLMSettings(api_key="")))

        with pytest.raises(ConfigurationError):
            async with app.router.lifespan_context(app):
                pass
