"""Unit tests for ConversationOrchestrator.

Tests cover:
1. Context composition (system prompt, directive turn)
2. Tool execution rounds and the round limit
3. Forced retry when a requested change was not made (at most once)
4. Canned replies for empty final text
"""

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from draftsync.app.db.inmemory import InMemoryRemoteCopyRepository
from draftsync.app.drafts.lifecycle import DraftLifecycleManager
from draftsync.app.errors import LLMUnavailable
from draftsync.app.llm.client import LLMClient
from draftsync.app.models.conversation import ConversationTurn, EditorContent, LLMReply, ToolCall
from draftsync.app.models.tools import ToolSpec
from draftsync.app.orchestration.catalog import ToolCatalog
from draftsync.app.orchestration.conversation import ConversationOrchestrator
from draftsync.app.orchestration.dispatcher import ToolDispatcher
from draftsync.app.orchestration.prompts import (
    CANNED_EMPTY_REPLY,
    CANNED_ROUND_LIMIT_REPLY,
    CANNED_UPDATED_REPLY,
)

OrchestratorFactory = Callable[..., ConversationOrchestrator]


class ScriptedLLM:
    """Returns the scripted replies in order, then repeats the last one."""

    def __init__(self, *replies: LLMReply) -> None:
        self.replies = list(replies)
        self.calls: list[list[ConversationTurn]] = []
        self.tools: list[list[ToolSpec]] = []

    async def complete(self, turns: list[ConversationTurn], tools: list[ToolSpec]) -> LLMReply:
        self.calls.append(list(turns))
        self.tools.append(tools)
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]


def _call(call_id: str, name: str, arguments: dict[str, object]) -> ToolCall:
    return ToolCall(id=call_id, name=name, arguments=json.dumps(arguments))


@pytest.fixture
def make_orchestrator(
    dispatcher: ToolDispatcher,
    catalog: ToolCatalog,
    lifecycle: DraftLifecycleManager,
    remote_copies: InMemoryRemoteCopyRepository,
    output_dir: Path,
) -> OrchestratorFactory:
    def build(llm: LLMClient, max_tool_rounds: int = 8) -> ConversationOrchestrator:
        return ConversationOrchestrator(
            llm,
            dispatcher,
            catalog,
            lifecycle,
            remote_copies,
            output_dir=output_dir,
            max_tool_rounds=max_tool_rounds,
        )

    return build


class TestContext:
    """Test what is sent to the model."""

    @pytest.mark.asyncio
    async def test_system_prompt_lists_tools_and_documents(
        self, make_orchestrator: OrchestratorFactory, lifecycle: DraftLifecycleManager
    ) -> None:
        draft = await lifecycle.create("Remote Work Policy", "# Purpose\nAll staff.")
        llm = ScriptedLLM(LLMReply(text="Here it is."))

        result = await make_orchestrator(llm).handle(
            "Show me the policy", active_draft_id=draft.id
        )

        system = llm.calls[0][0]
        assert system.role == "system"
        assert system.content is not None
        assert "- replace_text:" in system.content
        assert "- create_draft:" in system.content
        assert f"Draft ID: {draft.id} | Title: Remote Work Policy" in system.content
        assert "### ACTIVE DRAFT" in system.content
        assert "All staff." in system.content
        assert [t.role for t in llm.calls[0]] == ["system", "user"]
        assert result.rounds == 1
        assert result.forced_retry is False
        assert result.draft_id == draft.id

    @pytest.mark.asyncio
    async def test_editor_content_replaces_stored_content(
        self, make_orchestrator: OrchestratorFactory, lifecycle: DraftLifecycleManager
    ) -> None:
        draft = await lifecycle.create("Policy", "# Purpose\nstored text")
        llm = ScriptedLLM(LLMReply(text="ok"))

        await make_orchestrator(llm).handle(
            "Summarize",
            active_draft_id=draft.id,
            editor_content=EditorContent(markdown="# Purpose\nunsaved editor text"),
        )

        system = llm.calls[0][0].content or ""
        assert "unsaved editor text" in system
        assert "stored text" not in system

    @pytest.mark.asyncio
    async def test_modification_directive_is_added(
        self, make_orchestrator: OrchestratorFactory, lifecycle: DraftLifecycleManager
    ) -> None:
        draft = await lifecycle.create("Policy", "# Purpose\ntext")
        llm = ScriptedLLM(
            LLMReply(
                tool_calls=[_call("c1", "update_draft", {"id": draft.id, "content": "# New"})]
            ),
            LLMReply(text="Updated."),
        )

        await make_orchestrator(llm).handle("Change the purpose", active_draft_id=draft.id)

        turns = llm.calls[0]
        assert [t.role for t in turns] == ["system", "user", "system"]
        assert "MODIFY" in (turns[2].content or "")

    @pytest.mark.asyncio
    async def test_unknown_active_draft_is_ignored(
        self, make_orchestrator: OrchestratorFactory
    ) -> None:
        llm = ScriptedLLM(LLMReply(text="ok"))

        result = await make_orchestrator(llm).handle("Change it", active_draft_id=123)

        assert result.reply == "ok"
        assert result.forced_retry is False
        assert result.draft_id is None


class TestToolRounds:
    """Test tool execution."""

    @pytest.mark.asyncio
    async def test_tool_results_are_fed_back_in_order(
        self, make_orchestrator: OrchestratorFactory, lifecycle: DraftLifecycleManager
    ) -> None:
        draft = await lifecycle.create("Policy", "# Purpose\ntext")
        llm = ScriptedLLM(
            LLMReply(
                tool_calls=[
                    _call("c1", "get_draft", {"id": draft.id}),
                    _call("c2", "update_draft", {"id": draft.id, "content": "# Purpose\nnew"}),
                ]
            ),
            LLMReply(text=""),
        )

        result = await make_orchestrator(llm).handle(
            "Update the purpose", active_draft_id=draft.id
        )

        second = llm.calls[1]
        assert [t.role for t in second[-3:]] == ["assistant", "tool", "tool"]
        assert [t.tool_call_id for t in second[-2:]] == ["c1", "c2"]
        assert result.reply == CANNED_UPDATED_REPLY
        assert result.draft_updated is True
        assert result.draft_id == draft.id
        assert [log.name for log in result.tool_calls] == ["get_draft", "update_draft"]

    @pytest.mark.asyncio
    async def test_tool_errors_go_back_to_model(
        self, make_orchestrator: OrchestratorFactory
    ) -> None:
        llm = ScriptedLLM(
            LLMReply(tool_calls=[_call("c1", "get_draft", {"id": 42})]),
            LLMReply(text="That draft does not exist."),
        )

        result = await make_orchestrator(llm).handle("Show draft 42")

        tool_turn = llm.calls[1][-1]
        assert tool_turn.role == "tool"
        assert json.loads(tool_turn.content or "{}")["error"]["code"] == "DRAFT_NOT_FOUND"
        assert result.reply == "That draft does not exist."
        assert result.tool_calls[0].success is False

    @pytest.mark.asyncio
    async def test_round_limit_fails_closed(
        self, make_orchestrator: OrchestratorFactory, lifecycle: DraftLifecycleManager
    ) -> None:
        draft = await lifecycle.create("Policy", "# A")
        llm = ScriptedLLM(LLMReply(tool_calls=[_call("c", "get_draft", {"id": draft.id})]))

        result = await make_orchestrator(llm, max_tool_rounds=2).handle("Show it")

        assert result.reply == CANNED_ROUND_LIMIT_REPLY
        assert result.rounds == 3
        assert len(result.tool_calls) == 2

    @pytest.mark.asyncio
    async def test_create_counts_as_update(
        self, make_orchestrator: OrchestratorFactory
    ) -> None:
        llm = ScriptedLLM(
            LLMReply(
                tool_calls=[_call("c1", "create_draft", {"title": "New", "content": "# A"})]
            ),
            LLMReply(text="Created."),
        )

        result = await make_orchestrator(llm).handle("Create a vacation policy")

        assert result.draft_updated is True
        assert result.draft_id == 1


class TestForcedRetry:
    """Test the forced retry after an unfulfilled change request."""

    @pytest.mark.asyncio
    async def test_forced_retry_fires_at_most_once(
        self, make_orchestrator: OrchestratorFactory, lifecycle: DraftLifecycleManager
    ) -> None:
        draft = await lifecycle.create("Policy", "# Purpose\ntext")
        llm = ScriptedLLM(LLMReply(text="I have changed the title."))

        result = await make_orchestrator(llm).handle(
            "Change the title to Travel Policy", active_draft_id=draft.id
        )

        assert result.rounds == 2
        assert len(llm.calls) == 2
        assert result.forced_retry is True
        assert result.draft_updated is False
        assert result.reply == "I have changed the title."
        retry_turns = llm.calls[1]
        assert retry_turns[-2].role == "assistant"
        assert retry_turns[-1].role == "user"
        assert f"update_draft with id {draft.id}" in (retry_turns[-1].content or "")

    @pytest.mark.asyncio
    async def test_forced_retry_leads_to_update(
        self, make_orchestrator: OrchestratorFactory, lifecycle: DraftLifecycleManager
    ) -> None:
        draft = await lifecycle.create("Policy", "# Purpose\ntext")
        llm = ScriptedLLM(
            LLMReply(text="Sure, I will add it."),
            LLMReply(
                tool_calls=[
                    _call(
                        "c1",
                        "update_draft",
                        {"id": draft.id, "content": "# Purpose\ntext\n# Scope"},
                    )
                ]
            ),
            LLMReply(text=""),
        )

        result = await make_orchestrator(llm).handle(
            "Add a scope section", active_draft_id=draft.id
        )

        assert result.forced_retry is True
        assert result.draft_updated is True
        assert result.reply == CANNED_UPDATED_REPLY
        assert result.rounds == 3
        assert [s.title for s in lifecycle.get(draft.id)[0].content.sections] == [
            "Purpose",
            "Scope",
        ]

    @pytest.mark.asyncio
    async def test_no_retry_without_modification_intent(
        self, make_orchestrator: OrchestratorFactory, lifecycle: DraftLifecycleManager
    ) -> None:
        draft = await lifecycle.create("Policy", "# A")
        llm = ScriptedLLM(LLMReply(text="It has one section."))

        result = await make_orchestrator(llm).handle(
            "How many sections are there?", active_draft_id=draft.id
        )

        assert result.rounds == 1
        assert result.forced_retry is False

    @pytest.mark.asyncio
    async def test_no_retry_without_active_draft(
        self, make_orchestrator: OrchestratorFactory
    ) -> None:
        llm = ScriptedLLM(LLMReply(text=""))

        result = await make_orchestrator(llm).handle("Change everything")

        assert result.rounds == 1
        assert result.reply == CANNED_EMPTY_REPLY


@pytest.mark.asyncio
async def test_llm_failure_propagates(make_orchestrator: OrchestratorFactory) -> None:
    class FailingLLM:
        async def complete(
            self, turns: list[ConversationTurn], tools: list[ToolSpec]
        ) -> LLMReply:
            raise LLMUnavailable("model down")

    orchestrator = make_orchestrator(FailingLLM())

    with pytest.raises(LLMUnavailable):
        await orchestrator.handle("Hello")
