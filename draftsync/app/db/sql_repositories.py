"""SQL implementations of repository interfaces."""

from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from draftsync.app.db.models import DraftRow, RemoteCopyRow
from draftsync.app.models.drafts import Draft, DraftContent, DraftMetadata, DraftStatus
from draftsync.app.models.remote import RemoteCopy


def _to_draft(row: DraftRow) -> Draft:
    return Draft(
        id=row.draft_id,
        title=row.title,
        status=DraftStatus(row.status),
        metadata=DraftMetadata.model_validate(row.metadata_json),
        content=DraftContent.model_validate(row.content_json),
        local_file_ref=row.local_file_ref,
        created_at=row.created_at,
        last_modified_at=row.last_modified_at,
    )


def _commit_or_rollback(session: Session) -> None:
    """Commit, rolling back on failure so the shared session stays usable."""
    try:
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise


class SqlDraftRepository:
    """SQL implementation of DraftRepository."""

    def __init__(self, session: Session) -> None:
        self._session = session

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
        row = DraftRow(
            title=title,
            status=DraftStatus.draft.value,
            metadata_json=metadata.model_dump(mode="json"),
            content_json=seed_content.model_dump(mode="json"),
            local_file_ref=local_file_ref,
            created_at=now,
            last_modified_at=now,
        )

        self._session.add(row)
        _commit_or_rollback(self._session)

        return _to_draft(row)

    def get(self, draft_id: int) -> Draft | None:
        """Get draft by ID."""
        row = self._session.get(DraftRow, draft_id)
        if row is None:
            return None
        return _to_draft(row)

    def list_recent(self, limit: int = 20) -> list[Draft]:
        """List drafts, most recently modified first."""
        rows = self._session.scalars(
            select(DraftRow)
            .order_by(DraftRow.last_modified_at.desc(), DraftRow.draft_id.desc())
            .limit(limit)
        ).all()
        return [_to_draft(row) for row in rows]

    def get_by_file_ref(self, local_file_ref: str) -> Draft | None:
        """Get draft by local file reference."""
        row = self._session.scalars(
            select(DraftRow).where(DraftRow.local_file_ref == local_file_ref).limit(1)
        ).first()
        if row is None:
            return None
        return _to_draft(row)

    def set_metadata(self, draft_id: int, partial: dict[str, str]) -> Draft | None:
        """Merge metadata values."""
        row = self._session.get(DraftRow, draft_id)
        if row is None:
            return None

        merged = DraftMetadata.model_validate(row.metadata_json).merged(partial)
        row.metadata_json = merged.model_dump(mode="json")
        return self._commit(row)

    def set_content(self, draft_id: int, content: DraftContent) -> Draft | None:
        """Replace stored content."""
        row = self._session.get(DraftRow, draft_id)
        if row is None:
            return None

        row.content_json = content.model_dump(mode="json")
        return self._commit(row)

    def touch(self, draft_id: int) -> Draft | None:
        """Update last_modified_at."""
        row = self._session.get(DraftRow, draft_id)
        if row is None:
            return None
        return self._commit(row)

    def set_status(self, draft_id: int, status: DraftStatus) -> Draft | None:
        """Set status."""
        row = self._session.get(DraftRow, draft_id)
        if row is None:
            return None

        row.status = status.value
        return self._commit(row)

    def _commit(self, row: DraftRow) -> Draft:
        row.last_modified_at = datetime.now(UTC)
        _commit_or_rollback(self._session)
        return _to_draft(row)


class SqlRemoteCopyRepository:
    """SQL implementation of RemoteCopyRepository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, filename: str) -> RemoteCopy | None:
        """Get remote copy by filename."""
        row = self._session.get(RemoteCopyRow, filename)
        if row is None:
            return None
        return RemoteCopy(
            filename=row.filename,
            remote_id=row.remote_id,
            shareable_link=row.shareable_link,
            mime_type=row.mime_type,
        )

    def upsert(self, copy: RemoteCopy) -> RemoteCopy:
        """Create or replace remote copy."""
        row = self._session.get(RemoteCopyRow, copy.filename)
        if row is None:
            row = RemoteCopyRow(filename=copy.filename)
            self._session.add(row)

        row.remote_id = copy.remote_id
        row.shareable_link = copy.shareable_link
        row.mime_type = copy.mime_type
        _commit_or_rollback(self._session)

        return copy

    def list_all(self) -> list[RemoteCopy]:
        """List all remote copies."""
        rows = self._session.scalars(select(RemoteCopyRow).order_by(RemoteCopyRow.filename)).all()
        return [
            RemoteCopy(
                filename=row.filename,
                remote_id=row.remote_id,
                shareable_link=row.shareable_link,
                mime_type=row.mime_type,
            )
            for row in rows
        ]
