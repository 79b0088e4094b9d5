"""Models package - re-exports for convenience."""

from draftsync.app.models.conversation import (
    ChatResult,
    ConversationTurn,
    EditorContent,
    LLMReply,
    ToolCall,
)
from draftsync.app.models.drafts import (
    Draft,
    DraftContent,
    DraftFileStatus,
    DraftMetadata,
    DraftStatus,
    ParsedDocument,
    Section,
    TableData,
)
from draftsync.app.models.remote import RemoteCopy, UploadedItem
from draftsync.app.models.tools import (
    RendererResult,
    ToolCallLog,
    ToolError,
    ToolOutcome,
    ToolSpec,
)

__all__ = [
    # Drafts
    "Draft",
    "DraftContent",
    "DraftFileStatus",
    "DraftMetadata",
    "DraftStatus",
    "ParsedDocument",
    "Section",
    "TableData",
    # Remote
    "RemoteCopy",
    "UploadedItem",
    # Tools
    "ToolSpec",
    "ToolError",
    "ToolOutcome",
    "ToolCallLog",
    "RendererResult",
    # Conversation
    "ConversationTurn",
    "ToolCall",
    "LLMReply",
    "EditorContent",
    "ChatResult",
]
