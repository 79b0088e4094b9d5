"""Draft lifecycle manager - create/get/update/generate/publish over one draft.

Composes the content parser, the draft store, the renderer gateway and the
file synchronizer. Status only moves forward (draft -> generated -> published);
``generate`` on a published draft leaves it published.
"""

import asyncio
import logging
import re
import unicodedata
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

from draftsync.app.db.repositories import DraftRepository
from draftsync.app.errors import DraftNotFound, FileNotFoundInOutput
from draftsync.app.models.drafts import (
    Draft,
    DraftContent,
    DraftFileStatus,
    DraftMetadata,
    DraftStatus,
    Section,
)
from draftsync.app.models.remote import RemoteCopy
from draftsync.app.parsing.markdown import parse_content, sections_to_markdown
from draftsync.app.renderer.gateway import RendererGateway
from draftsync.app.sync.synchronizer import FileSynchronizer

logger = logging.getLogger(__name__)

_SECTIONS_ADAPTER = TypeAdapter(list[Section])

# Loose text, or sections already in structured form
ContentInput = str | list[Section] | list[dict[str, Any]]


def sanitize_filename(name: str) -> str:
    """'Política de Férias' -> 'Politica_de_Ferias'."""
    decomposed = unicodedata.normalize("NFD", name)
    ascii_text = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    cleaned = re.sub(r"[^a-zA-Z0-9._-]", "_", ascii_text)
    return re.sub(r"_+", "_", cleaned).strip("_.")


def make_filename(title: str, extension: str = ".docx") -> str:
    """Collision-resistant filename derived from a draft title."""
    slug = sanitize_filename(title)[:80] or "document"
    return f"{slug}_{uuid.uuid4().hex[:8]}{extension}"


def coerce_content(content: ContentInput | None, metadata: DraftMetadata) -> DraftContent:
    """Parse loose text, or accept structured sections as they are."""
    if content is None:
        return DraftContent()
    if isinstance(content, str):
        parsed = parse_content(content, metadata)
        return DraftContent(markdown=content, sections=parsed.sections)

    sections = _SECTIONS_ADAPTER.validate_python(content)
    return DraftContent(markdown=sections_to_markdown(sections), sections=sections)


class DraftLifecycleManager:
    """Draft state machine over the store, renderer and synchronizer."""

    def __init__(
        self,
        drafts: DraftRepository,
        gateway: RendererGateway,
        synchronizer: FileSynchronizer,
        *,
        extension: str = ".docx",
    ) -> None:
        self._drafts = drafts
        self._gateway = gateway
        self._sync = synchronizer
        self._extension = extension
        self._locks: dict[int, asyncio.Lock] = {}

    def lock_for(self, draft_id: int) -> asyncio.Lock:
        """Per-draft lock; at most one render-and-write per file at a time."""
        lock = self._locks.get(draft_id)
        if lock is None:
            lock = self._locks[draft_id] = asyncio.Lock()
        return lock

    async def create(
        self,
        title: str,
        content: ContentInput | None = None,
        *,
        metadata: DraftMetadata | dict[str, Any] | None = None,
    ) -> Draft:
        """Create a draft and render its initial file.

        Nothing is stored if rendering fails or the file never appears.

        Raises:
            RendererError: Renderer call failed
            FileNotFoundInOutput: Rendered file did not materialize in time
        """
        doc_metadata = DraftMetadata(subject=title)
        if isinstance(metadata, DraftMetadata):
            doc_metadata = doc_metadata.merged(metadata.model_dump())
        elif metadata:
            doc_metadata = doc_metadata.merged(metadata)

        draft_content = coerce_content(content, doc_metadata)
        filename = make_filename(title, self._extension)
        path = self._sync.resolve_path(filename)

        await self._render(path, draft_content, doc_metadata)

        draft = self._drafts.create(
            title,
            draft_content,
            metadata=doc_metadata,
            local_file_ref=filename,
        )
        logger.info(
            f"Created draft {draft.id} '{title}' -> {filename} "
            f"({len(draft_content.sections)} sections)"
        )
        return draft

    def get(self, draft_id: int) -> tuple[Draft, Path]:
        """Draft plus the absolute path of its local file (not touched)."""
        draft = self._require(draft_id)
        return draft, self._sync.resolve_path(draft.local_file_ref)

    def list_recent(self, limit: int = 20) -> list[Draft]:
        """Most recently modified drafts first."""
        return self._drafts.list_recent(limit)

    def find_by_path(self, path: Path) -> Draft | None:
        """Draft whose local file is ``path``, or None outside the output area."""
        try:
            ref = path.resolve().relative_to(self._sync.output_dir).as_posix()
        except ValueError:
            return None
        return self._drafts.get_by_file_ref(ref)

    async def update(
        self,
        draft_id: int,
        *,
        content: ContentInput | None = None,
        metadata: dict[str, Any] | None = None,
        actor: str = "agent",
    ) -> Draft:
        """Update a draft.

        With content: re-parse, re-render into the same file, store the new
        content. Without content: only merge metadata and touch the draft.
        Status is left unchanged either way.

        Raises:
            DraftNotFound: Unknown draft id
            RendererError: Renderer call failed
            FileNotFoundInOutput: Re-rendered file did not materialize in time
        """
        async with self.lock_for(draft_id):
            draft = self._require(draft_id)

            if content is None:
                if metadata:
                    draft = self._drafts.set_metadata(draft_id, metadata) or draft
                updated = self._drafts.touch(draft_id) or draft
                logger.info(f"Draft {draft_id} touched by {actor} (no content change)")
                return updated

            # Nothing is persisted until the re-render succeeded
            doc_metadata = draft.metadata.merged(metadata) if metadata else draft.metadata
            draft_content = coerce_content(content, doc_metadata)
            path = self._sync.resolve_path(draft.local_file_ref)
            await self._render(path, draft_content, doc_metadata)

            if metadata:
                self._drafts.set_metadata(draft_id, metadata)
            updated = self._drafts.set_content(draft_id, draft_content) or draft
            logger.info(
                f"Draft {draft_id} updated by {actor} ({len(draft_content.sections)} sections)"
            )
            return updated

    def update_metadata(self, draft_id: int, partial: dict[str, Any]) -> Draft:
        """Merge metadata without rendering."""
        draft = self._drafts.set_metadata(draft_id, partial)
        if draft is None:
            raise DraftNotFound(draft_id)
        return draft

    def mark_modified(self, draft_id: int) -> Draft:
        """Record that the draft's file was changed outside the renderer."""
        draft = self._drafts.touch(draft_id)
        if draft is None:
            raise DraftNotFound(draft_id)
        return draft

    async def generate(self, draft_id: int) -> Path:
        """Guarantee the draft's file exists; never re-renders.

        Raises:
            DraftNotFound: Unknown draft id
            FileNotFoundInOutput: The file is missing (use update to re-render)
        """
        async with self.lock_for(draft_id):
            draft, path = self.get(draft_id)
            if not path.is_file():
                raise FileNotFoundInOutput(
                    f"File for draft {draft_id} not found at {path}; "
                    "update the draft to re-render it"
                )

            if draft.status.rank < DraftStatus.generated.rank:
                self._drafts.set_status(draft_id, DraftStatus.generated)
            return path

    async def publish(self, draft_id: int) -> RemoteCopy:
        """Push the draft's file to remote storage and mark it published.

        Raises:
            DraftNotFound: Unknown draft id
            FileNotFoundInOutput: The file is missing
            DocumentLocked: Remote copy stayed locked through all retries
            StorageError: Any other upload failure
        """
        async with self.lock_for(draft_id):
            _, path = self.get(draft_id)
            if not path.is_file():
                raise FileNotFoundInOutput(f"File for draft {draft_id} not found at {path}")

            copy = await self._sync.push(path)
            self._drafts.set_status(draft_id, DraftStatus.published)
            logger.info(f"Published draft {draft_id} as {copy.remote_id}")
            return copy

    def status(self, draft_id: int) -> DraftFileStatus:
        """Draft status plus local file existence, size and mtime."""
        draft, path = self.get(draft_id)
        exists = path.is_file()
        stat = path.stat() if exists else None
        copy = self._sync.remote_copy_for(path)

        return DraftFileStatus(
            draft_id=draft.id,
            title=draft.title,
            status=draft.status,
            metadata=draft.metadata,
            file_path=str(path),
            file_exists=exists,
            file_size=stat.st_size if stat else 0,
            file_modified_at=datetime.fromtimestamp(stat.st_mtime, UTC) if stat else None,
            shareable_link=copy.shareable_link if copy else None,
        )

    async def _render(self, path: Path, content: DraftContent, metadata: DraftMetadata) -> None:
        await self._gateway.render(output_path=path, sections=content.sections, metadata=metadata)
        if not await self._sync.await_materialization(path):
            raise FileNotFoundInOutput(f"Rendered file did not appear at {path}")

    def _require(self, draft_id: int) -> Draft:
        draft = self._drafts.get(draft_id)
        if draft is None:
            raise DraftNotFound(draft_id)
        return draft
