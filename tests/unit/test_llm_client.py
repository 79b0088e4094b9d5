"""Tests for LLM client.

All tests are deterministic and do not make real network calls.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from openai import OpenAIError
from pydantic import SecretStr

from draftsync.app.config import Settings
from draftsync.app.errors import LLMUnavailable
from draftsync.app.llm.client import DeterministicStubClient, OpenAIClient, get_llm_client
from draftsync.app.models.conversation import ConversationTurn
from draftsync.app.models.tools import ToolSpec

TOOLS = [ToolSpec(name="get_draft", description="Get a draft", parameters={"type": "object"})]


def _completion(content: str | None, tool_calls: list[SimpleNamespace] | None = None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _tool_call(call_id: str, name: str, arguments: str) -> SimpleNamespace:
    return SimpleNamespace(
        id=call_id,
        type="function",
        function=SimpleNamespace(name=name, arguments=arguments),
    )


class TestDeterministicStubClient:
    """Test the stub client."""

    @pytest.mark.asyncio
    async def test_echoes_last_user_message(self) -> None:
        client = DeterministicStubClient()
        turns = [
            ConversationTurn(role="system", content="prompt"),
            ConversationTurn(role="user", content="first"),
            ConversationTurn(role="assistant", content="ok"),
            ConversationTurn(role="user", content="second"),
        ]

        reply = await client.complete(turns, TOOLS)

        assert "Received: second" in reply.text
        assert "1 tools" in reply.text
        assert reply.tool_calls == []


class TestFactory:
    """Test get_llm_client selection."""

    def test_returns_stub_without_key(self) -> None:
        client = get_llm_client(Settings(openai_api_key=None))

        assert isinstance(client, DeterministicStubClient)

    def test_returns_stub_with_empty_key(self) -> None:
        client = get_llm_client(Settings(openai_api_key=SecretStr("")))

        assert isinstance(client, DeterministicStubClient)

    def test_returns_openai_client_with_key(self) -> None:
        client = get_llm_client(Settings(openai_api_key=SecretStr("sk-test"), openai_model="m1"))

        assert isinstance(client, OpenAIClient)
        assert client.model == "m1"


class TestOpenAIClient:
    """Test OpenAIClient with a mocked SDK call."""

    @pytest.mark.asyncio
    async def test_parses_tool_calls(self) -> None:
        client = OpenAIClient(api_key="sk-test")
        create = AsyncMock(
            return_value=_completion(None, [_tool_call("call_1", "get_draft", '{"id": 1}')])
        )

        with patch.object(client.client.chat.completions, "create", create):
            reply = await client.complete([ConversationTurn(role="user", content="hi")], TOOLS)

        assert reply.text == ""
        assert len(reply.tool_calls) == 1
        assert reply.tool_calls[0].id == "call_1"
        assert reply.tool_calls[0].name == "get_draft"
        assert reply.tool_calls[0].arguments == '{"id": 1}'

        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["tool_choice"] == "auto"
        assert kwargs["tools"][0]["function"]["name"] == "get_draft"
        assert kwargs["messages"] == [{"role": "user", "content": "hi"}]

    @pytest.mark.asyncio
    async def test_text_reply_without_tools(self) -> None:
        client = OpenAIClient(api_key="sk-test")
        create = AsyncMock(return_value=_completion("Done."))

        with patch.object(client.client.chat.completions, "create", create):
            reply = await client.complete([ConversationTurn(role="user", content="hi")], [])

        assert reply.text == "Done."
        assert reply.tool_calls == []
        assert "tools" not in create.call_args.kwargs

    @pytest.mark.asyncio
    async def test_sdk_error_becomes_llm_unavailable(self) -> None:
        client = OpenAIClient(api_key="sk-test")
        create = AsyncMock(side_effect=OpenAIError("quota exceeded"))

        with patch.object(client.client.chat.completions, "create", create):
            with pytest.raises(LLMUnavailable, match="quota exceeded"):
                await client.complete([ConversationTurn(role="user", content="hi")], TOOLS)
