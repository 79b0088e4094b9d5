"""Tool call models: declarations, outcomes and call logs."""

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

# JSON-serializable value type
JsonValue = str | int | float | bool | None | dict[str, Any] | list[Any]


class ToolSpec(BaseModel):
    """Tool declaration as advertised to the language model."""

    name: str
    description: str = ""
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def to_openai(self) -> dict[str, Any]:
        """Function-declaration shape used by chat completion APIs."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolError(BaseModel):
    """Machine-readable tool failure returned to the model."""

    code: str
    message: str
    remediation: str | None = None


class ToolOutcome(BaseModel):
    """Result of one dispatched tool call.

    ``updated_draft_id`` is set when the call changed a draft's content or file.
    """

    name: str
    ok: bool
    result: JsonValue = None
    error: ToolError | None = None
    updated_draft_id: int | None = None

    def to_model_payload(self) -> str:
        """Serialize for the tool-result turn sent back to the model."""
        if self.ok:
            body: dict[str, Any] = {"result": self.result}
        else:
            body = {"error": self.error.model_dump(exclude_none=True) if self.error else None}
            if self.result is not None:
                body["result"] = self.result
        return json.dumps(body, ensure_ascii=False, default=str)


class ToolCallLog(BaseModel):
    """Log entry for a single tool call.

    Captures timing, success/failure, and small input summaries
    for observability without storing full payloads.
    """

    name: str = Field(..., description="Tool name (e.g. 'update_draft', 'replace_text')")
    started_at: datetime = Field(..., description="UTC timestamp when call started")
    finished_at: datetime = Field(..., description="UTC timestamp when call finished")
    duration_ms: int = Field(..., description="Duration in milliseconds")
    success: bool = Field(..., description="True if call succeeded, False if error")
    error: str | None = Field(None, description="Error code if call failed")
    input_summary: dict[str, JsonValue] = Field(
        default_factory=dict,
        description="Small summary of inputs (key scalars only)",
    )


class RendererResult(BaseModel):
    """Response of one external renderer operation.

    ``structured`` carries the renderer's machine-readable payload when it
    provides one (e.g. ``{"result_path": ...}``); ``text`` is the human-readable
    output that is also passed on to the model.
    """

    text: str = ""
    structured: dict[str, Any] | None = None
