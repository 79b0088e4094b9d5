"""LLM client for tool-calling conversations with OpenAI integration.

Security: Reads API key from settings only, never hardcoded.
Provides a deterministic stub when no key is present, for local runs and tests.
"""

import logging
from typing import Any, Protocol

from openai import AsyncOpenAI, OpenAIError

from draftsync.app.config import Settings
from draftsync.app.errors import LLMUnavailable
from draftsync.app.models.conversation import ConversationTurn, LLMReply, ToolCall
from draftsync.app.models.tools import ToolSpec

logger = logging.getLogger(__name__)


class LLMClient(Protocol):
    """Protocol for LLM client implementations."""

    async def complete(self, turns: list[ConversationTurn], tools: list[ToolSpec]) -> LLMReply:
        """Send the transcript and tool declarations, get text or tool calls back.

        Args:
            turns: Conversation so far, system turns included
            tools: Tool declarations the model may call

        Returns:
            LLMReply with final text, or with one or more tool calls

        Raises:
            LLMUnavailable: The model could not be reached
        """
        ...


class DeterministicStubClient:
    """Deterministic stub client (no API key required). Never calls tools."""

    async def complete(self, turns: list[ConversationTurn], tools: list[ToolSpec]) -> LLMReply:
        """Echo the last user message."""
        last_user = next(
            (turn.content for turn in reversed(turns) if turn.role == "user" and turn.content),
            "",
        )
        return LLMReply(
            text=(
                f"Received: {last_user}\n\n"
                f"*This is a stub response; {len(tools)} tools are available.*"
            )
        )


class OpenAIClient:
    """OpenAI-backed LLM client using chat completions with function calling."""

    def __init__(self, api_key: str, model: str = "gpt-4o", *, temperature: float = 0.2):
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key (read from settings)
            model: Model name to use
            temperature: Sampling temperature
        """
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature

    async def complete(self, turns: list[ConversationTurn], tools: list[ToolSpec]) -> LLMReply:
        """Run one chat completion."""
        kwargs: dict[str, Any] = {}
        if tools:
            kwargs = {"tools": [tool.to_openai() for tool in tools], "tool_choice": "auto"}

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[turn.to_openai() for turn in turns],
                temperature=self.temperature,
                **kwargs,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI API call failed: {e}")
            raise LLMUnavailable(f"Language model call failed: {e}") from e

        message = response.choices[0].message
        tool_calls = [
            ToolCall(
                id=call.id,
                name=call.function.name,
                arguments=call.function.arguments or "{}",
            )
            for call in message.tool_calls or []
            if call.type == "function"
        ]
        return LLMReply(text=message.content or "", tool_calls=tool_calls)


def get_llm_client(settings: Settings) -> LLMClient:
    """Factory function to get appropriate LLM client based on config.

    Returns:
        OpenAIClient if API key is configured, DeterministicStubClient otherwise
    """
    api_key = settings.openai_api_key

    if api_key and api_key.get_secret_value():
        logger.info(f"Using OpenAI client ({settings.openai_model})")
        return OpenAIClient(api_key=api_key.get_secret_value(), model=settings.openai_model)
    else:
        logger.warning("No OpenAI API key configured, using deterministic stub client")
        return DeterministicStubClient()
