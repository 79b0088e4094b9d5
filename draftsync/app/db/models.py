"""SQLAlchemy ORM models for drafts and remote copies."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func

# JSONB on Postgres, plain JSON elsewhere (sqlite in tests)
JsonColumn = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class DraftRow(Base):
    """Draft table - editable documents and their generated file."""

    __tablename__ = "draft"
    __table_args__ = (
        Index("idx_draft_modified", "last_modified_at"),
        Index("idx_draft_file_ref", "local_file_ref"),
    )

    draft_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="draft")
    metadata_json: Mapped[dict[str, Any]] = mapped_column(JsonColumn, nullable=False)
    content_json: Mapped[dict[str, Any]] = mapped_column(JsonColumn, nullable=False)
    local_file_ref: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    last_modified_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class RemoteCopyRow(Base):
    """Remote copy table - one row per synchronized local filename."""

    __tablename__ = "remote_copy"

    filename: Mapped[str] = mapped_column(Text, primary_key=True)
    remote_id: Mapped[str] = mapped_column(Text, nullable=False)
    shareable_link: Mapped[str] = mapped_column(Text, nullable=False, default="")
    mime_type: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
