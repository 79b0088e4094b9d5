"""Target-path extraction for pass-through renderer operations.

Sources are tried in priority order: declared arguments, the renderer's
structured result, then a pattern match over the result text.
"""

import re
from collections.abc import Sequence
from typing import Any, Protocol

from draftsync.app.models.tools import RendererResult

# Argument keys naming the file an operation reads
INPUT_PATH_KEYS = ("filename", "docx_path", "path")

# Argument keys naming the file an operation writes
OUTPUT_PATH_KEYS = ("output_path", "filename", "save_path", "docx_path", "path")

RESULT_PATH_KEYS = ("result_path", "output_path", "path")

# Renderer operations that create or change a file
MUTATING_OPERATIONS = frozenset(
    {
        "create_word_document",
        "create_policy_document",
        "fill_document_simple",
        "fill_document_template",
        "merge_documents",
        "edit_document",
        "modify_document",
        "update_document",
        "replace_paragraph_block_below_header",
        "replace_block_between_manual_anchors",
        "set_table_column_width",
        "set_table_column_widths",
        "set_table_width",
        "auto_fit_table_columns",
        "format_table_cell_text",
        "set_table_cell_padding",
        "replace_text",
        "modify_paragraph",
        "edit_paragraph_text",
        "search_and_replace",
        "insert_line_or_paragraph_near_text",
        "insert_paragraph_after",
        "edit_header_footer",
        "insert_text_inline",
        "add_paragraph",
    }
)


def first_string_arg(arguments: dict[str, Any], keys: Sequence[str]) -> str | None:
    """Value of the first key in ``keys`` holding a non-empty string."""
    for key in keys:
        value = arguments.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class PathSource(Protocol):
    """One way of finding the path an operation wrote."""

    def extract(self, arguments: dict[str, Any], result: RendererResult) -> str | None: ...


class ArgumentPathSource:
    """Path declared in the call arguments."""

    def __init__(self, keys: Sequence[str] = OUTPUT_PATH_KEYS) -> None:
        self._keys = keys

    def extract(self, arguments: dict[str, Any], result: RendererResult) -> str | None:
        return first_string_arg(arguments, self._keys)


class StructuredResultPathSource:
    """Path reported in the renderer's structured result."""

    def __init__(self, keys: Sequence[str] = RESULT_PATH_KEYS) -> None:
        self._keys = keys

    def extract(self, arguments: dict[str, Any], result: RendererResult) -> str | None:
        if not result.structured:
            return None
        return first_string_arg(result.structured, self._keys)


class TextPatternPathSource:
    """Absolute path ending in the document extension, found in the result text."""

    def __init__(self, extension: str = ".docx") -> None:
        ext = re.escape(extension)
        self._pattern = re.compile(
            rf"([A-Za-z]:\\[^:\n\"']+?{ext}|/[^\s:\"']+?{ext})(?![A-Za-z0-9])",
            re.IGNORECASE,
        )

    def extract(self, arguments: dict[str, Any], result: RendererResult) -> str | None:
        match = self._pattern.search(result.text or "")
        return match.group(1) if match else None


class PathExtractor:
    """Tries each source in order and returns the first path found."""

    def __init__(self, sources: Sequence[PathSource]) -> None:
        self._sources = list(sources)

    @classmethod
    def default(cls, extension: str = ".docx") -> "PathExtractor":
        return cls(
            [
                ArgumentPathSource(),
                StructuredResultPathSource(),
                TextPatternPathSource(extension),
            ]
        )

    def extract(self, arguments: dict[str, Any], result: RendererResult) -> str | None:
        for source in self._sources:
            path = source.extract(arguments, result)
            if path:
                return path
        return None
