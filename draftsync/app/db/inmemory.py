"""In-memory implementations of repository interfaces."""

import itertools
from datetime import UTC, datetime

from draftsync.app.models.drafts import Draft, DraftContent, DraftMetadata, DraftStatus
from draftsync.app.models.remote import RemoteCopy


class InMemoryDraftRepository:
    """In-memory implementation of DraftRepository."""

    def __init__(self) -> None:
        self._drafts: dict[int, Draft] = {}
        self._ids = itertools.count(1)

    def create(
        self,
        title: str,
        seed_content: DraftContent,
        *,
        metadata: DraftMetadata,
        local_file_ref: str,
    ) -> Draft:
        """Create a new draft."""
        now = datetime.now(UTC)
        draft = Draft(
            id=next(self._ids),
            title=title,
            status=DraftStatus.draft,
            metadata=metadata,
            content=seed_content,
            local_file_ref=local_file_ref,
            created_at=now,
            last_modified_at=now,
        )
        self._drafts[draft.id] = draft
        return draft

    def get(self, draft_id: int) -> Draft | None:
        """Get draft by ID."""
        return self._drafts.get(draft_id)

    def list_recent(self, limit: int = 20) -> list[Draft]:
        """List drafts, most recently modified first."""
        drafts = sorted(self._drafts.values(), key=lambda d: d.last_modified_at, reverse=True)
        return drafts[:limit]

    def get_by_file_ref(self, local_file_ref: str) -> Draft | None:
        """Get draft by local file reference."""
        return next(
            (d for d in self._drafts.values() if d.local_file_ref == local_file_ref), None
        )

    def set_metadata(self, draft_id: int, partial: dict[str, str]) -> Draft | None:
        """Merge metadata values."""
        draft = self._drafts.get(draft_id)
        if draft is None:
            return None
        return self._replace(draft, metadata=draft.metadata.merged(partial))

    def set_content(self, draft_id: int, content: DraftContent) -> Draft | None:
        """Replace stored content."""
        draft = self._drafts.get(draft_id)
        if draft is None:
            return None
        return self._replace(draft, content=content)

    def touch(self, draft_id: int) -> Draft | None:
        """Update last_modified_at."""
        draft = self._drafts.get(draft_id)
        if draft is None:
            return None
        return self._replace(draft)

    def set_status(self, draft_id: int, status: DraftStatus) -> Draft | None:
        """Set status."""
        draft = self._drafts.get(draft_id)
        if draft is None:
            return None
        return self._replace(draft, status=status)

    def _replace(self, draft: Draft, **updates: object) -> Draft:
        updated = draft.model_copy(update={**updates, "last_modified_at": datetime.now(UTC)})
        self._drafts[draft.id] = updated
        return updated


class InMemoryRemoteCopyRepository:
    """In-memory implementation of RemoteCopyRepository."""

    def __init__(self) -> None:
        self._copies: dict[str, RemoteCopy] = {}

    def get(self, filename: str) -> RemoteCopy | None:
        """Get remote copy by filename."""
        return self._copies.get(filename)

    def upsert(self, copy: RemoteCopy) -> RemoteCopy:
        """Create or replace remote copy."""
        self._copies[copy.filename] = copy
        return copy

    def list_all(self) -> list[RemoteCopy]:
        """List all remote copies."""
        return list(self._copies.values())
