"""Conversation transcript models for one user request."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from draftsync.app.models.drafts import DraftMetadata
from draftsync.app.models.tools import ToolCallLog

Role = Literal["system", "user", "assistant", "tool"]


class ToolCall(BaseModel):
    """Tool invocation requested by the model.

    ``arguments`` is the raw JSON text as returned by the model; parsing
    happens at the dispatcher boundary.
    """

    id: str
    name: str
    arguments: str = "{}"


class ConversationTurn(BaseModel):
    """One entry of the transcript."""

    role: Role
    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None

    def to_openai(self) -> dict[str, Any]:
        message: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in self.tool_calls
            ]
        if self.tool_call_id is not None:
            message["tool_call_id"] = self.tool_call_id
        return message


class LLMReply(BaseModel):
    """Model response: either final text or a list of tool calls."""

    text: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)


class EditorContent(BaseModel):
    """What the front-end editor currently shows for the active draft."""

    markdown: str
    metadata: DraftMetadata = Field(default_factory=DraftMetadata)


class ChatResult(BaseModel):
    """Outcome of one user request."""

    reply: str
    draft_updated: bool = False
    draft_id: int | None = None
    forced_retry: bool = False
    rounds: int = 0
    tool_calls: list[ToolCallLog] = Field(default_factory=list)
