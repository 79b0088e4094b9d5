"""Prompt text for the conversation loop."""

from draftsync.app.models.conversation import EditorContent
from draftsync.app.models.drafts import Draft
from draftsync.app.models.remote import RemoteCopy
from draftsync.app.models.tools import ToolSpec

SYSTEM_INSTRUCTION = """### IDENTITY
Role: Document Automation Specialist
You create, read and edit policy documents (.docx) through the tools provided.

### CRITICAL RULES
1. New documents are always started with create_draft. Never fill a template directly
   to start a document.
2. To change an existing draft: call get_draft, apply the change to the COMPLETE content,
   then call update_draft with the full updated content. Describing a change is not
   making it.
3. Draft content is Markdown: '## Title' starts a section, '- item' and '1. item' are
   lists, and tables use | Header1 | Header2 |, a |---|---| separator, then one row per line.
   Do not put list numbers in section titles.
4. Filenames always end with ".docx". Use the full paths listed below for existing files.
5. If a tool returns an error with a remediation, follow it or tell the user exactly what
   to do (for example, close the document and retry).

### RESPONSE FORMAT
After changing a document, confirm what changed in one or two sentences and include the
shareable link when a tool returned one."""

CANNED_UPDATED_REPLY = "Done. The document was updated."
CANNED_EMPTY_REPLY = "I could not produce a response. Please rephrase your request."
CANNED_ROUND_LIMIT_REPLY = (
    "I stopped after too many tool steps without finishing. "
    "Please check the document and try a more specific request."
)


def format_tool_list(tools: list[ToolSpec]) -> str:
    lines = []
    for tool in tools:
        summary = tool.description.splitlines()[0] if tool.description else ""
        lines.append(f"- {tool.name}: {summary}")
    return "\n".join(lines)


def format_known_documents(
    drafts: list[Draft], remote_copies: list[RemoteCopy], output_dir: str
) -> str:
    lines: list[str] = []
    for draft in drafts:
        lines.append(
            f"- Draft ID: {draft.id} | Title: {draft.title} | Status: {draft.status.value} "
            f"| Path: {output_dir}/{draft.local_file_ref}"
        )
    draft_files = {draft.local_file_ref for draft in drafts}
    for copy in remote_copies:
        if copy.filename not in draft_files:
            lines.append(f"- File: {copy.filename} | Path: {output_dir}/{copy.filename}")
    return "\n".join(lines) or "- (none)"


def build_system_prompt(
    *,
    tools: list[ToolSpec],
    drafts: list[Draft],
    remote_copies: list[RemoteCopy],
    output_dir: str,
    active_draft: Draft | None = None,
    editor_content: EditorContent | None = None,
) -> str:
    """Base instructions plus the dynamic context for one request."""
    parts = [
        SYSTEM_INSTRUCTION,
        f"### AVAILABLE OPERATIONS\n{format_tool_list(tools)}",
        "### KNOWN DOCUMENTS\n"
        + format_known_documents(drafts, remote_copies, output_dir),
    ]

    if active_draft is not None:
        content = editor_content.markdown if editor_content else active_draft.content.markdown
        metadata = editor_content.metadata if editor_content else active_draft.metadata
        parts.append(
            "### ACTIVE DRAFT\n"
            f"The user is working on draft ID {active_draft.id} ('{active_draft.title}').\n"
            f"Metadata: {metadata.model_dump_json()}\n"
            "Current content:\n"
            f"{content or '(empty)'}\n\n"
            f"Any change the user asks for applies to this draft. Use get_draft and "
            f"update_draft with id {active_draft.id}; do NOT call create_draft for it."
        )

    return "\n\n".join(parts)


def modification_directive(draft_id: int) -> str:
    """Pre-emptive directive when the utterance asks for a change."""
    return (
        "The user is asking to MODIFY the active document. You MUST call "
        f"get_draft with id {draft_id}, then update_draft with id {draft_id} and the "
        "complete updated content. Do not just describe the change."
    )


def forced_retry_message(draft_id: int) -> str:
    """Sent once when the model answered without updating the draft."""
    return (
        "You have not applied the requested change. Execute the tool calls now: "
        f"call get_draft with id {draft_id}, then update_draft with id {draft_id} and "
        "the complete updated content. Reply only after update_draft has succeeded."
    )
