"""Tool dispatcher - routes model tool calls to draft operations or the renderer.

Every failure is converted into a ``ToolOutcome`` carrying a machine-readable
error code, so the conversation loop can hand it back to the model.
"""

import contextlib
import json
import logging
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from draftsync.app.drafts.lifecycle import DraftLifecycleManager
from draftsync.app.errors import (
    DocumentLocked,
    DraftSyncError,
    FileNotFoundInOutput,
    MalformedToolArguments,
    StorageError,
    UnknownOperation,
)
from draftsync.app.models.drafts import Draft
from draftsync.app.models.tools import (
    JsonValue,
    RendererResult,
    ToolCallLog,
    ToolError,
    ToolOutcome,
)
from draftsync.app.orchestration.arguments import (
    ARGUMENT_SHAPES,
    CreateDraftArgs,
    GenerateDraftArgs,
    GetDraftArgs,
    PublishDraftArgs,
    UpdateDraftArgs,
)
from draftsync.app.orchestration.catalog import ToolCatalog
from draftsync.app.orchestration.paths import (
    INPUT_PATH_KEYS,
    MUTATING_OPERATIONS,
    PathExtractor,
    first_string_arg,
)
from draftsync.app.renderer.gateway import DocumentRenderer
from draftsync.app.sync.synchronizer import FileSynchronizer

logger = logging.getLogger(__name__)

_SUMMARY_MAX_CHARS = 120


# Metrics interface (to be implemented by actual metrics system)
class DispatchMetrics:
    """Interface for dispatch metrics."""

    def record_latency(self, tool: str, outcome: str, latency_ms: float) -> None:
        """Record tool dispatch latency."""
        pass

    def inc_error(self, tool: str, code: str) -> None:
        """Increment error counter."""
        pass


# Logging interface
class DispatchLogger:
    """Interface for structured logging."""

    def log_dispatch(
        self,
        tool: str,
        outcome: str,
        latency_ms: float,
        *,
        error_code: str | None = None,
        input_summary: dict[str, Any] | None = None,
    ) -> None:
        """Log one dispatched tool call."""
        pass


def parse_arguments(raw: str | dict[str, Any] | None) -> dict[str, Any]:
    """Decode tool-call arguments into a dict.

    Raises:
        MalformedToolArguments: Not valid JSON, or not a JSON object
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedToolArguments(f"Arguments are not valid JSON: {e.msg}") from e
    if not isinstance(decoded, dict):
        raise MalformedToolArguments("Arguments must be a JSON object")
    return decoded


def summarize_arguments(arguments: dict[str, Any]) -> dict[str, JsonValue]:
    """Top-level scalar arguments, long strings truncated."""
    summary: dict[str, JsonValue] = {}
    for key, value in arguments.items():
        if isinstance(value, bool | int | float):
            summary[key] = value
        elif isinstance(value, str):
            summary[key] = (
                value if len(value) <= _SUMMARY_MAX_CHARS else value[:_SUMMARY_MAX_CHARS] + "..."
            )
    return summary


class ToolDispatcher:
    """Maps an operation name to a lifecycle call or a synchronized renderer call."""

    def __init__(
        self,
        lifecycle: DraftLifecycleManager,
        synchronizer: FileSynchronizer,
        renderer: DocumentRenderer,
        catalog: ToolCatalog,
        *,
        path_extractor: PathExtractor | None = None,
        metrics: DispatchMetrics | None = None,
        logger: DispatchLogger | None = None,
    ) -> None:
        """Initialize dispatcher.

        Args:
            lifecycle: Draft lifecycle manager
            synchronizer: File synchronizer for pass-through operations
            renderer: External renderer
            catalog: Tool catalog (decides which renderer names are known)
            path_extractor: Output path extraction chain (default: args, result, text)
            metrics: Metrics recorder (optional, defaults to no-op)
            logger: Structured logger (optional, defaults to no-op)
        """
        self._lifecycle = lifecycle
        self._sync = synchronizer
        self._renderer = renderer
        self._catalog = catalog
        self._paths = path_extractor or PathExtractor.default()
        self._metrics = metrics or DispatchMetrics()
        self._logger = logger or DispatchLogger()

    async def dispatch(
        self, name: str, raw_arguments: str | dict[str, Any] | None
    ) -> tuple[ToolOutcome, ToolCallLog]:
        """Execute one tool call. Never raises for tool-level failures."""
        started_at = datetime.now(UTC)
        start = time.monotonic()
        arguments: dict[str, Any] = {}

        try:
            arguments = parse_arguments(raw_arguments)
            if name in ARGUMENT_SHAPES:
                outcome = await self._dispatch_draft(name, arguments)
            elif name in self._catalog.renderer_tool_names():
                outcome = await self._pass_through(name, arguments)
            else:
                raise UnknownOperation(f"Unknown operation: {name}")
        except DraftSyncError as e:
            outcome = _error_outcome(name, e)
        except Exception as e:
            # Unexpected failures are reported to the model like any other tool error
            logger.exception(f"Tool {name} failed unexpectedly")
            outcome = _error_outcome(name, e)

        finished_at = datetime.now(UTC)
        latency_ms = (time.monotonic() - start) * 1000
        error_code = outcome.error.code if outcome.error else None
        input_summary = summarize_arguments(arguments)

        status = "success" if outcome.ok else "error"
        self._metrics.record_latency(name, status, latency_ms)
        if error_code:
            self._metrics.inc_error(name, error_code)
        self._logger.log_dispatch(
            name, status, latency_ms, error_code=error_code, input_summary=input_summary
        )

        log = ToolCallLog(
            name=name,
            started_at=started_at,
            finished_at=finished_at,
            duration_ms=int(latency_ms),
            success=outcome.ok,
            error=error_code,
            input_summary=input_summary,
        )
        return outcome, log

    async def _dispatch_draft(self, name: str, arguments: dict[str, Any]) -> ToolOutcome:
        args = _validate(ARGUMENT_SHAPES[name], arguments)

        if isinstance(args, CreateDraftArgs):
            draft = await self._lifecycle.create(args.title, args.content, metadata=args.metadata)
            _, path = self._lifecycle.get(draft.id)
            return ToolOutcome(
                name=name,
                ok=True,
                result=self._draft_payload(draft, path, include_content=False),
                updated_draft_id=draft.id,
            )

        if isinstance(args, UpdateDraftArgs):
            draft = await self._lifecycle.update(
                args.draft_id, content=args.content, metadata=args.metadata
            )
            _, path = self._lifecycle.get(draft.id)
            return ToolOutcome(
                name=name,
                ok=True,
                result=self._draft_payload(draft, path, include_content=False),
                updated_draft_id=draft.id,
            )

        if isinstance(args, GetDraftArgs):
            draft, path = self._lifecycle.get(args.draft_id)
            return ToolOutcome(
                name=name, ok=True, result=self._draft_payload(draft, path, include_content=True)
            )

        if isinstance(args, GenerateDraftArgs):
            path = await self._lifecycle.generate(args.draft_id)
            draft, _ = self._lifecycle.get(args.draft_id)
            return ToolOutcome(
                name=name, ok=True, result=self._draft_payload(draft, path, include_content=False)
            )

        if isinstance(args, PublishDraftArgs):
            copy = await self._lifecycle.publish(args.draft_id)
            return ToolOutcome(
                name=name,
                ok=True,
                result={
                    "draft_id": args.draft_id,
                    "status": "published",
                    "remote_id": copy.remote_id,
                    "shareable_link": copy.shareable_link,
                },
            )

        raise UnknownOperation(f"Unknown operation: {name}")

    async def _pass_through(self, name: str, arguments: dict[str, Any]) -> ToolOutcome:
        target = first_string_arg(arguments, INPUT_PATH_KEYS)
        target_path = self._sync.resolve_path(target) if target else None
        draft = self._lifecycle.find_by_path(target_path) if target_path else None

        lock = self._lifecycle.lock_for(draft.id) if draft else contextlib.nullcontext()
        async with lock:
            if target_path is not None:
                await self._sync.pull_if_stale(target_path)

            result = await self._renderer.call_tool(name, arguments)
            payload: dict[str, Any] = {"text": result.text}
            if result.structured:
                payload["structured"] = result.structured

            if name not in MUTATING_OPERATIONS:
                return ToolOutcome(name=name, ok=True, result=payload)

            return await self._sync_mutated_file(name, arguments, result, payload)

    async def _sync_mutated_file(
        self,
        name: str,
        arguments: dict[str, Any],
        result: RendererResult,
        payload: dict[str, Any],
    ) -> ToolOutcome:
        raw_path = self._paths.extract(arguments, result)
        if raw_path is None:
            logger.warning(f"{name} changed a file but its path could not be identified")
            payload["sync"] = "skipped: output path not identified"
            return ToolOutcome(name=name, ok=True, result=payload)

        path = self._sync.resolve_path(raw_path)
        if not await self._sync.await_materialization(path):
            raise FileNotFoundInOutput(f"{name} reported success but {path} did not appear")

        draft = self._lifecycle.find_by_path(path)
        updated_draft_id = None
        if draft is not None:
            self._lifecycle.mark_modified(draft.id)
            updated_draft_id = draft.id

        try:
            copy = await self._sync.push(path)
        except DocumentLocked as e:
            return ToolOutcome(
                name=name,
                ok=False,
                result=payload,
                error=ToolError(code=e.code, message=str(e), remediation=e.remediation),
                updated_draft_id=updated_draft_id,
            )
        except StorageError as e:
            logger.warning(f"{name} succeeded locally but upload of {path.name} failed: {e}")
            payload["sync_error"] = str(e)
            return ToolOutcome(
                name=name, ok=True, result=payload, updated_draft_id=updated_draft_id
            )

        payload["file_path"] = str(path)
        payload["shareable_link"] = copy.shareable_link
        if copy.shareable_link:
            payload["text"] = f"{result.text}\n\nShareable link: {copy.shareable_link}".strip()
        return ToolOutcome(name=name, ok=True, result=payload, updated_draft_id=updated_draft_id)

    def _draft_payload(self, draft: Draft, path: Path, *, include_content: bool) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": draft.id,
            "title": draft.title,
            "status": draft.status.value,
            "metadata": draft.metadata.model_dump(),
            "file_path": str(path),
            "sections": len(draft.content.sections),
            "last_modified_at": draft.last_modified_at.isoformat(),
        }
        if include_content:
            payload["content"] = draft.content.markdown
        copy = self._sync.remote_copy_for(path)
        if copy is not None:
            payload["shareable_link"] = copy.shareable_link
        return payload


def _validate(shape: type[BaseModel], arguments: dict[str, Any]) -> BaseModel:
    try:
        return shape.model_validate(arguments)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
            for err in e.errors()
        )
        raise MalformedToolArguments(f"Invalid arguments: {problems}") from e


def _error_outcome(name: str, exc: Exception) -> ToolOutcome:
    code = exc.code if isinstance(exc, DraftSyncError) else DraftSyncError.code
    remediation = exc.remediation if isinstance(exc, DraftSyncError) else None
    return ToolOutcome(
        name=name,
        ok=False,
        error=ToolError(code=code, message=str(exc) or type(exc).__name__, remediation=remediation),
    )
