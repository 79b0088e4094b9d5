"""Conversation orchestrator - the tool-calling loop for one user request.

SEND -> (EXECUTE_TOOLS -> SEND)* -> FINAL, with at most one forced retry when
the user asked for a change to the active draft and the model answered without
making it.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from draftsync.app.db.repositories import RemoteCopyRepository
from draftsync.app.drafts.lifecycle import DraftLifecycleManager
from draftsync.app.errors import DraftNotFound
from draftsync.app.llm.client import LLMClient
from draftsync.app.models.conversation import (
    ChatResult,
    ConversationTurn,
    EditorContent,
    ToolCall,
)
from draftsync.app.models.drafts import Draft
from draftsync.app.models.tools import ToolCallLog
from draftsync.app.orchestration.catalog import ToolCatalog
from draftsync.app.orchestration.dispatcher import ToolDispatcher
from draftsync.app.orchestration.intent import looks_like_modification_request
from draftsync.app.orchestration.prompts import (
    CANNED_EMPTY_REPLY,
    CANNED_ROUND_LIMIT_REPLY,
    CANNED_UPDATED_REPLY,
    build_system_prompt,
    forced_retry_message,
    modification_directive,
)

logger = logging.getLogger(__name__)


@dataclass
class ConversationState:
    """Mutable state of one request; discarded when the request ends."""

    utterance: str
    active_draft: Draft | None = None
    modification_intent: bool = False
    turns: list[ConversationTurn] = field(default_factory=list)
    tool_calls: list[ToolCallLog] = field(default_factory=list)
    updated_draft_ids: list[int] = field(default_factory=list)
    forced_retry: bool = False
    rounds: int = 0
    tool_rounds: int = 0

    @property
    def draft_updated(self) -> bool:
        """Active draft updated in this request (any draft, if none is active)."""
        if self.active_draft is not None:
            return self.active_draft.id in self.updated_draft_ids
        return bool(self.updated_draft_ids)

    @property
    def result_draft_id(self) -> int | None:
        if self.updated_draft_ids:
            return self.updated_draft_ids[-1]
        return self.active_draft.id if self.active_draft else None


class ConversationOrchestrator:
    """Drives the model through tool calls until it produces a final answer."""

    def __init__(
        self,
        llm: LLMClient,
        dispatcher: ToolDispatcher,
        catalog: ToolCatalog,
        lifecycle: DraftLifecycleManager,
        remote_copies: RemoteCopyRepository,
        *,
        output_dir: str | Path,
        max_tool_rounds: int = 8,
        intent_fn: Callable[[str], bool] = looks_like_modification_request,
    ) -> None:
        """Initialize orchestrator.

        Args:
            llm: Language-model client
            dispatcher: Tool dispatcher
            catalog: Tool catalog offered to the model
            lifecycle: Draft lifecycle manager (for the context snapshot)
            remote_copies: Remote copies (for the context snapshot)
            output_dir: Managed output directory shown to the model
            max_tool_rounds: Tool rounds allowed per request before giving up
            intent_fn: Modification-intent predicate
        """
        self._llm = llm
        self._dispatcher = dispatcher
        self._catalog = catalog
        self._lifecycle = lifecycle
        self._remote_copies = remote_copies
        self._output_dir = str(output_dir)
        self._max_tool_rounds = max_tool_rounds
        self._intent_fn = intent_fn

    async def handle(
        self,
        utterance: str,
        *,
        active_draft_id: int | None = None,
        editor_content: EditorContent | None = None,
    ) -> ChatResult:
        """Answer one user request.

        Raises:
            LLMUnavailable: The model could not be reached
        """
        state = ConversationState(
            utterance=utterance,
            active_draft=self._active_draft(active_draft_id),
            modification_intent=self._intent_fn(utterance),
        )
        tools = await self._catalog.load()

        state.turns.append(
            ConversationTurn(
                role="system",
                content=build_system_prompt(
                    tools=tools,
                    drafts=self._lifecycle.list_recent(),
                    remote_copies=self._remote_copies.list_all(),
                    output_dir=self._output_dir,
                    active_draft=state.active_draft,
                    editor_content=editor_content,
                ),
            )
        )
        state.turns.append(ConversationTurn(role="user", content=utterance))
        if state.modification_intent and state.active_draft is not None:
            state.turns.append(
                ConversationTurn(
                    role="system", content=modification_directive(state.active_draft.id)
                )
            )

        while True:
            reply = await self._llm.complete(state.turns, tools)
            state.rounds += 1

            if reply.tool_calls:
                if state.tool_rounds >= self._max_tool_rounds:
                    logger.warning(
                        f"Stopping after {state.tool_rounds} tool rounds without a final answer"
                    )
                    return self._result(state, CANNED_ROUND_LIMIT_REPLY)

                state.tool_rounds += 1
                await self._execute_tools(state, reply.text, reply.tool_calls)
                continue

            if self._needs_forced_retry(state):
                assert state.active_draft is not None
                logger.info(
                    f"Model answered without updating draft {state.active_draft.id}; forcing retry"
                )
                state.forced_retry = True
                if reply.text:
                    state.turns.append(ConversationTurn(role="assistant", content=reply.text))
                state.turns.append(
                    ConversationTurn(
                        role="user", content=forced_retry_message(state.active_draft.id)
                    )
                )
                continue

            text = reply.text.strip()
            if not text:
                text = CANNED_UPDATED_REPLY if state.updated_draft_ids else CANNED_EMPTY_REPLY
            return self._result(state, text)

    async def _execute_tools(
        self, state: ConversationState, text: str, tool_calls: list[ToolCall]
    ) -> None:
        """Run tool calls in the order requested and append their results."""
        state.turns.append(
            ConversationTurn(role="assistant", content=text or None, tool_calls=tool_calls)
        )
        for call in tool_calls:
            outcome, log = await self._dispatcher.dispatch(call.name, call.arguments)
            state.tool_calls.append(log)
            if outcome.updated_draft_id is not None:
                state.updated_draft_ids.append(outcome.updated_draft_id)
            state.turns.append(
                ConversationTurn(
                    role="tool", content=outcome.to_model_payload(), tool_call_id=call.id
                )
            )

    def _needs_forced_retry(self, state: ConversationState) -> bool:
        return (
            state.modification_intent
            and state.active_draft is not None
            and not state.draft_updated
            and not state.forced_retry
        )

    def _active_draft(self, draft_id: int | None) -> Draft | None:
        if draft_id is None:
            return None
        try:
            draft, _ = self._lifecycle.get(draft_id)
        except DraftNotFound:
            logger.warning(f"Active draft {draft_id} not found, continuing without it")
            return None
        return draft

    def _result(self, state: ConversationState, reply: str) -> ChatResult:
        return ChatResult(
            reply=reply,
            draft_updated=state.draft_updated,
            draft_id=state.result_draft_id,
            forced_retry=state.forced_retry,
            rounds=state.rounds,
            tool_calls=state.tool_calls,
        )
