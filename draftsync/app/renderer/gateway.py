"""Renderer gateway - shapes draft content into the renderer's fill arguments."""

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from draftsync.app.models.drafts import DraftMetadata, Section
from draftsync.app.models.tools import RendererResult

logger = logging.getLogger(__name__)


class DocumentRenderer(Protocol):
    """External renderer boundary: named operations with JSON arguments."""

    async def list_tools(self) -> list[dict[str, Any]]:
        """Tool declarations offered by the renderer."""
        ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> RendererResult:
        """Invoke one operation. Failures raise RendererError."""
        ...


def build_fill_data(sections: list[Section], metadata: DraftMetadata) -> dict[str, Any]:
    """Template data for the fill operation.

    Keys follow the template placeholders: metadata fields, a ``secao`` loop
    with ``titulo``/``paragrafo`` per section, and ``tabela_dinamica`` holding
    the rows of the first table (keyed by header label).
    """
    secao: list[dict[str, Any]] = []
    tabela_dinamica: list[dict[str, str]] = []

    for section in sections:
        entry: dict[str, Any] = {"titulo": section.title, "paragrafo": section.body_text}
        if section.table is not None:
            rows = section.table.labelled_rows()
            entry["tabela"] = rows
            if not tabela_dinamica:
                tabela_dinamica = rows
        if section.post_table_text:
            entry["paragrafo_pos_tabela"] = section.post_table_text
        secao.append(entry)

    data: dict[str, Any] = {
        "codigo": metadata.code,
        "assunto": metadata.subject,
        "departamento": metadata.department,
        "revisao": metadata.revision,
        "data_publicacao": metadata.publish_date,
        "data_vigencia": metadata.effective_date,
        "secao": secao,
    }
    if tabela_dinamica:
        data["tabela_dinamica"] = tabela_dinamica
    return data


class RendererGateway:
    """Fire-and-wait call to the renderer's fill operation.

    The renderer writes ``output_path`` asynchronously; callers must wait for
    materialization before trusting the file.
    """

    def __init__(
        self,
        renderer: DocumentRenderer,
        *,
        template_path: str | Path,
        fill_operation: str = "fill_document_simple",
    ) -> None:
        self._renderer = renderer
        self._template_path = str(template_path)
        self._fill_operation = fill_operation

    async def render(
        self,
        *,
        output_path: Path,
        sections: list[Section],
        metadata: DraftMetadata,
        template_ref: str | None = None,
    ) -> RendererResult:
        """Ask the renderer to fill the template into ``output_path``.

        Raises:
            RendererError: Renderer call failed
        """
        arguments = {
            "template_path": template_ref or self._template_path,
            "output_path": str(output_path),
            "filename": str(output_path),
            "data_json": json.dumps(build_fill_data(sections, metadata), ensure_ascii=False),
        }
        logger.info(
            f"Rendering {output_path.name} with {self._fill_operation} ({len(sections)} sections)"
        )
        return await self._renderer.call_tool(self._fill_operation, arguments)
