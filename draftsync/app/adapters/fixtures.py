"""In-memory storage and renderer fakes for development and tests."""

import itertools
import json
from pathlib import Path
from typing import Any

from draftsync.app.errors import RendererError, StorageError
from draftsync.app.models.remote import UploadedItem
from draftsync.app.models.tools import RendererResult

# Minimal declarations for a few editing operations the fake renderer supports
FIXTURE_TOOLS: list[dict[str, Any]] = [
    {
        "name": "fill_document_simple",
        "description": "Fill the policy template with structured content.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "template_path": {"type": "string"},
                "output_path": {"type": "string"},
                "data_json": {"type": "string"},
            },
            "required": ["output_path", "data_json"],
        },
    },
    {
        "name": "get_document_text",
        "description": "Return the plain text of a document.",
        "inputSchema": {
            "type": "object",
            "properties": {"filename": {"type": "string"}},
            "required": ["filename"],
        },
    },
    {
        "name": "replace_text",
        "description": "Replace every occurrence of a text in a document.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "filename": {"type": "string"},
                "old_text": {"type": "string"},
                "new_text": {"type": "string"},
            },
            "required": ["filename", "old_text", "new_text"],
        },
    },
]


class InMemoryRemoteStorage:
    """RemoteStorage fake keeping items in a dict.

    ``locked_uploads`` makes the next N uploads fail with a 423 lock error;
    ``fail_downloads`` makes every download fail. Every call is recorded in
    ``calls`` so tests can assert on network traffic.
    """

    def __init__(self, *, link_base: str = "https://share.example/") -> None:
        self.items: dict[str, tuple[str, bytes]] = {}
        self.calls: list[tuple[str, str]] = []
        self.locked_uploads = 0
        self.fail_downloads = False
        self.fail_share_links = False
        self._link_base = link_base
        self._ids = itertools.count(1)

    def seed(self, filename: str, content: bytes) -> str:
        """Put a file in remote storage without recording a call."""
        remote_id = self._id_for(filename) or f"item-{next(self._ids)}"
        self.items[remote_id] = (filename, content)
        return remote_id

    async def upload(self, filename: str, content: bytes, *, mime_type: str) -> UploadedItem:
        self.calls.append(("upload", filename))
        if self.locked_uploads > 0:
            self.locked_uploads -= 1
            raise StorageError(
                "The resource you are attempting to access is locked",
                status_code=423,
                provider_code="resourceLocked",
            )
        remote_id = self.seed(filename, content)
        return UploadedItem(remote_id=remote_id, web_url=f"{self._link_base}web/{remote_id}")

    async def download(self, remote_id: str) -> bytes:
        self.calls.append(("download", remote_id))
        if self.fail_downloads or remote_id not in self.items:
            raise StorageError(f"Item {remote_id} unavailable", status_code=503)
        return self.items[remote_id][1]

    async def find_by_name(self, filename: str) -> str | None:
        self.calls.append(("find_by_name", filename))
        return self._id_for(filename)

    async def create_share_link(self, remote_id: str) -> str:
        self.calls.append(("create_share_link", remote_id))
        if self.fail_share_links:
            raise StorageError("Sharing disabled", status_code=403, provider_code="accessDenied")
        return f"{self._link_base}edit/{remote_id}"

    def _id_for(self, filename: str) -> str | None:
        for remote_id, (name, _) in self.items.items():
            if name == filename:
                return remote_id
        return None


class FixtureRenderer:
    """Renderer fake that writes files synchronously.

    The fill operation writes the ``data_json`` string to ``output_path`` so
    tests can inspect what was rendered. ``replace_text`` edits the named
    file in place.
    """

    def __init__(self, *, output_dir: str | Path, fill_operation: str = "fill_document_simple"):
        self.output_dir = Path(output_dir)
        self.fill_operation = fill_operation
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.write_files = True

    async def list_tools(self) -> list[dict[str, Any]]:
        return FIXTURE_TOOLS

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> RendererResult:
        self.calls.append((name, arguments))

        if name == self.fill_operation:
            output = self._resolve(arguments["output_path"])
            if self.write_files:
                output.parent.mkdir(parents=True, exist_ok=True)
                data = arguments.get("data_json", "{}")
                if not isinstance(data, str):
                    data = json.dumps(data, ensure_ascii=False)
                output.write_text(data, encoding="utf-8")
            return RendererResult(
                text=f"Document created successfully at {output}",
                structured={"result_path": str(output)},
            )

        if name == "get_document_text":
            target = self._resolve(arguments["filename"])
            if not target.exists():
                raise RendererError(f"Document {target} does not exist")
            return RendererResult(text=target.read_text(encoding="utf-8"))

        if name == "replace_text":
            target = self._resolve(arguments["filename"])
            if not target.exists():
                raise RendererError(f"Document {target} does not exist")
            text = target.read_text(encoding="utf-8")
            target.write_text(
                text.replace(arguments.get("old_text", ""), arguments.get("new_text", "")),
                encoding="utf-8",
            )
            return RendererResult(text=f"Replaced text in {target}")

        raise RendererError(f"Unknown tool: {name}")

    def _resolve(self, name: str) -> Path:
        path = Path(name)
        return path if path.is_absolute() else self.output_dir / path
