"""Repository protocol interfaces for data access."""

from typing import Protocol

from draftsync.app.models.drafts import Draft, DraftContent, DraftMetadata, DraftStatus
from draftsync.app.models.remote import RemoteCopy


class DraftRepository(Protocol):
    """Durable record of drafts. Last write wins; no locking at this layer."""

    def create(
        self,
        title: str,
        seed_content: DraftContent,
        *,
        metadata: DraftMetadata,
        local_file_ref: str,
    ) -> Draft:
        """Create a new draft with status ``draft``.

        Args:
            title: Draft title
            seed_content: Initial content (source text and parsed sections)
            metadata: Document metadata
            local_file_ref: File path relative to the managed output area

        Returns:
            Created draft
        """
        ...

    def get(self, draft_id: int) -> Draft | None:
        """Get draft by ID.

        Returns:
            Draft or None if not found
        """
        ...

    def list_recent(self, limit: int = 20) -> list[Draft]:
        """List drafts, most recently modified first."""
        ...

    def get_by_file_ref(self, local_file_ref: str) -> Draft | None:
        """Get the draft that owns a local file, or None."""
        ...

    def set_metadata(self, draft_id: int, partial: dict[str, str]) -> Draft | None:
        """Merge non-empty metadata values into the stored metadata.

        Returns:
            Updated draft or None if not found
        """
        ...

    def set_content(self, draft_id: int, content: DraftContent) -> Draft | None:
        """Replace stored content and update last_modified_at."""
        ...

    def touch(self, draft_id: int) -> Draft | None:
        """Update last_modified_at only."""
        ...

    def set_status(self, draft_id: int, status: DraftStatus) -> Draft | None:
        """Set status (no transition checks at this layer)."""
        ...


class RemoteCopyRepository(Protocol):
    """Mapping from local filename to its remote counterpart."""

    def get(self, filename: str) -> RemoteCopy | None:
        """Get remote copy by filename, or None if nothing remote is known."""
        ...

    def upsert(self, copy: RemoteCopy) -> RemoteCopy:
        """Create or replace the entry for ``copy.filename``."""
        ...

    def list_all(self) -> list[RemoteCopy]:
        """List all known remote copies."""
        ...
