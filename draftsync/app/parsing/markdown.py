"""Content parser - loose markdown-like text to Section/Table model."""

import logging
import re
import unicodedata
from typing import Any

from pydantic import ValidationError

from draftsync.app.models.drafts import DraftMetadata, ParsedDocument, Section, TableData

logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)(?:\s+#+)?\s*$")
_LIST_ITEM_RE = re.compile(r"^\s*(?:\d+[.)]|[-*+])\s+(.*)$")
_NUMERIC_PREFIX_RE = re.compile(r"^\d+(?:\.\d+)*\.?\s*")
_SEPARATOR_CELL_RE = re.compile(r"^:?-{1,}:?$")
_RULE_RE = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})$")

BULLET = "•"


def normalize_header(label: str) -> str:
    """Normalize a table header into a row key.

    Accents are stripped, text lowercased, and every run of
    non-alphanumeric characters becomes a single underscore.
    """
    decomposed = unicodedata.normalize("NFKD", label)
    ascii_text = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return re.sub(r"[^0-9a-z]+", "_", ascii_text.lower()).strip("_")


def strip_numeric_prefix(title: str) -> str:
    """'2.1 Scope' -> 'Scope'. Titles that are only a number are kept."""
    stripped = _NUMERIC_PREFIX_RE.sub("", title).strip()
    return stripped or title.strip()


def _split_row(line: str) -> list[str]:
    inner = line.strip()[1:-1]
    return [cell.strip() for cell in inner.split("|")]


def _is_separator(cells: list[str]) -> bool:
    return bool(cells) and all(_SEPARATOR_CELL_RE.match(cell.replace(" ", "")) for cell in cells)


def _is_table_line(line: str) -> bool:
    stripped = line.strip()
    return len(stripped) >= 2 and stripped.startswith("|") and stripped.endswith("|")


def build_table(raw_rows: list[list[str]]) -> TableData:
    """Build TableData from accumulated cell rows; first row is the header.

    Rows shorter than the header get ``None`` for the missing cells; extra
    cells beyond the header are dropped.
    """
    headers = raw_rows[0]
    keys: list[str] = []
    for index, header in enumerate(headers):
        key = normalize_header(header) or f"col_{index + 1}"
        if key in keys:
            key = f"{key}_{index + 1}"
        keys.append(key)

    rows: list[dict[str, str | None]] = []
    for cells in raw_rows[1:]:
        if len(cells) != len(keys):
            logger.debug(
                "Table row has %d cells, header has %d; keeping row", len(cells), len(keys)
            )
        rows.append({key: (cells[i] if i < len(cells) else None) for i, key in enumerate(keys)})

    return TableData(headers=headers, keys=keys, rows=rows)


def parse_content(
    text: str | None,
    metadata: DraftMetadata | dict[str, Any] | None = None,
) -> ParsedDocument:
    """Parse loose semi-structured text into ordered sections.

    Pure function with no I/O. Never raises for string input; malformed
    constructs degrade instead of failing.

    Args:
        text: Markdown-like text (headings, lists, pipe tables, paragraphs)
        metadata: Document metadata, passed through to the result

    Returns:
        ParsedDocument with metadata and a (possibly empty) section list

    Strategy:
        1. Headings level 1-3 close the current section and open a new one
           (leading numbering stripped from the title)
        2. Headings level 4+ become an emphasized paragraph line in the
           current section
        3. Numbered/bulleted lines accumulate as one bulleted paragraph block
        4. Pipe-delimited lines accumulate as a table (separator rows dropped);
           paragraphs after a table go to post_table_text
        5. Blank lines flush an open list or table
        6. Text before the first heading is discarded
    """
    if isinstance(metadata, DraftMetadata):
        doc_metadata = metadata
    else:
        try:
            doc_metadata = DraftMetadata.model_validate(metadata or {})
        except ValidationError as e:
            logger.debug("Ignoring invalid metadata: %s", e)
            doc_metadata = DraftMetadata()

    sections: list[Section] = []
    if not text:
        return ParsedDocument(metadata=doc_metadata, sections=sections)

    normalized = text.replace("\r\n", "\n").replace("\r", "\n")

    current: dict[str, Any] | None = None
    paragraph_lines: list[str] = []
    list_items: list[str] = []
    table_rows: list[list[str]] = []

    def add_block(block: str) -> None:
        """Append a paragraph block before or after the section's table."""
        if current is None or not block:
            return
        target = "post" if current["table"] is not None else "body"
        current[target].append(block)

    def flush_paragraph() -> None:
        if paragraph_lines:
            add_block("\n\n".join(paragraph_lines))
            paragraph_lines.clear()

    def flush_list() -> None:
        if list_items:
            add_block("\n".join(f"{BULLET} {item}" for item in list_items))
            list_items.clear()

    def flush_table() -> None:
        if not table_rows:
            return
        if current is not None:
            if current["table"] is None:
                current["table"] = build_table(table_rows)
            else:
                # One table per section; later tables stay as pipe text
                add_block("\n".join("| " + " | ".join(cells) + " |" for cells in table_rows))
        table_rows.clear()

    def flush_all() -> None:
        flush_list()
        flush_table()
        flush_paragraph()

    def close_section() -> None:
        flush_all()
        if current is not None:
            sections.append(
                Section(
                    title=current["title"],
                    body_text="\n\n".join(current["body"]),
                    table=current["table"],
                    post_table_text="\n\n".join(current["post"]) if current["post"] else None,
                )
            )

    for line in normalized.split("\n"):
        stripped = line.strip()

        if not stripped:
            flush_list()
            flush_table()
            continue

        if _RULE_RE.match(stripped):
            flush_all()
            continue

        heading = _HEADING_RE.match(stripped)
        if heading:
            level = len(heading.group(1))
            heading_text = heading.group(2).strip()
            if level <= 3:
                close_section()
                current = {
                    "title": strip_numeric_prefix(heading_text),
                    "body": [],
                    "table": None,
                    "post": [],
                }
            else:
                flush_all()
                add_block(heading_text)
            continue

        if _is_table_line(stripped):
            flush_list()
            flush_paragraph()
            cells = _split_row(stripped)
            if _is_separator(cells):
                continue
            table_rows.append(cells)
            continue

        item = _LIST_ITEM_RE.match(line)
        if item:
            flush_table()
            flush_paragraph()
            list_items.append(item.group(1).strip())
            continue

        flush_list()
        flush_table()
        paragraph_lines.append(stripped)

    close_section()

    return ParsedDocument(metadata=doc_metadata, sections=sections)


def sections_to_markdown(sections: list[Section]) -> str:
    """Serialize sections back to the markdown-like text the parser accepts."""
    blocks: list[str] = []
    for section in sections:
        blocks.append(f"## {section.title}")
        if section.body_text:
            blocks.append(_unbullet(section.body_text))
        if section.table is not None:
            table = section.table
            lines = ["| " + " | ".join(table.headers) + " |"]
            lines.append("|" + "|".join("---" for _ in table.headers) + "|")
            for row in table.labelled_rows():
                lines.append("| " + " | ".join(row.values()) + " |")
            blocks.append("\n".join(lines))
        if section.post_table_text:
            blocks.append(_unbullet(section.post_table_text))
    return "\n\n".join(blocks)


def _unbullet(text: str) -> str:
    return "\n".join(
        f"- {line[len(BULLET) + 1:]}" if line.startswith(f"{BULLET} ") else line
        for line in text.split("\n")
    )
