"""Tool catalog - draft-management tools plus the renderer's own tools."""

import logging
from typing import Any

from draftsync.app.errors import RendererError
from draftsync.app.models.tools import ToolSpec
from draftsync.app.renderer.gateway import DocumentRenderer

logger = logging.getLogger(__name__)

_CONTENT_DESCRIPTION = (
    "Document content. Either Markdown text, or an object with the metadata fields "
    "(assunto, codigo, departamento, revisao, data_publicacao, data_vigencia) and "
    "markdownContent. Markdown supports '## Heading' sections, '- item' and '1. item' "
    "lists, and tables: | Header1 | Header2 |\\n|---|---|\\n| Value1 | Value2 |"
)

_DRAFT_ID = {"type": "integer", "description": "ID of the draft"}

DRAFT_TOOLS: list[ToolSpec] = [
    ToolSpec(
        name="create_draft",
        description=(
            "Creates a new document draft and renders its file. Use this INSTEAD of "
            "creating a document directly. Provide both title and content."
        ),
        parameters={
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Title of the document"},
                "content": {"type": ["string", "object"], "description": _CONTENT_DESCRIPTION},
            },
            "required": ["title", "content"],
        },
    ),
    ToolSpec(
        name="get_draft",
        description="Retrieves a draft's metadata, status, file path and current content.",
        parameters={
            "type": "object",
            "properties": {"id": _DRAFT_ID},
            "required": ["id"],
        },
    ),
    ToolSpec(
        name="update_draft",
        description=(
            "MUST be used to change an existing draft. Call get_draft first, then call "
            "update_draft with the COMPLETE updated content. Omitting content only "
            "updates metadata."
        ),
        parameters={
            "type": "object",
            "properties": {
                "id": _DRAFT_ID,
                "content": {"type": ["string", "object"], "description": _CONTENT_DESCRIPTION},
                "metadata": {
                    "type": "object",
                    "description": "Metadata fields to change",
                    "additionalProperties": {"type": "string"},
                },
            },
            "required": ["id"],
        },
    ),
    ToolSpec(
        name="generate_from_draft",
        description=(
            "Makes sure the draft's document file exists and marks the draft as "
            "generated. Does not re-render; use update_draft to change content."
        ),
        parameters={
            "type": "object",
            "properties": {"id": _DRAFT_ID},
            "required": ["id"],
        },
    ),
    ToolSpec(
        name="publish_draft",
        description="Uploads the draft's document to shared storage and returns its link.",
        parameters={
            "type": "object",
            "properties": {"id": _DRAFT_ID},
            "required": ["id"],
        },
    ),
]


def renderer_tool_to_spec(declaration: dict[str, Any]) -> ToolSpec:
    """Convert a renderer tool declaration ({name, description, inputSchema})."""
    return ToolSpec(
        name=declaration["name"],
        description=declaration.get("description") or "",
        parameters=declaration.get("inputSchema") or {"type": "object", "properties": {}},
    )


class ToolCatalog:
    """Operations offered to the model.

    Renderer tools are listed once and cached; if listing fails only the
    draft tools are offered, and a later ``load`` tries again.
    """

    def __init__(
        self, renderer: DocumentRenderer, *, hidden: frozenset[str] = frozenset()
    ) -> None:
        """Initialize catalog.

        Args:
            renderer: External renderer to list tools from
            hidden: Renderer tool names never offered to the model
        """
        self._renderer = renderer
        self._hidden = hidden
        self._renderer_tools: list[ToolSpec] | None = None

    async def load(self) -> list[ToolSpec]:
        """All tool declarations: renderer tools followed by draft tools."""
        if self._renderer_tools is None:
            try:
                declarations = await self._renderer.list_tools()
            except RendererError as e:
                logger.error(f"Could not list renderer tools, offering draft tools only: {e}")
                return list(DRAFT_TOOLS)

            draft_names = {tool.name for tool in DRAFT_TOOLS}
            self._renderer_tools = [
                renderer_tool_to_spec(decl)
                for decl in declarations
                if decl.get("name") and decl["name"] not in draft_names | self._hidden
            ]
            logger.info(f"Loaded {len(self._renderer_tools)} renderer tools")

        return [*self._renderer_tools, *DRAFT_TOOLS]

    def renderer_tool_names(self) -> frozenset[str]:
        """Names of the renderer tools loaded so far."""
        return frozenset(tool.name for tool in self._renderer_tools or [])
