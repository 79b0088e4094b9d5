"""Draft domain models."""

from datetime import datetime
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class DraftStatus(str, Enum):
    """Draft lifecycle status. Ordered: draft < generated < published."""

    draft = "draft"
    generated = "generated"
    published = "published"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = [DraftStatus.draft, DraftStatus.generated, DraftStatus.published]


class DraftMetadata(BaseModel):
    """Policy document metadata printed in the template header/footer.

    Accepts the English field names, their camelCase forms and the
    template's own keys (assunto, codigo, ...) on input.
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    subject: str = Field("", validation_alias=AliasChoices("subject", "assunto"))
    code: str = Field("", validation_alias=AliasChoices("code", "codigo"))
    department: str = Field("", validation_alias=AliasChoices("department", "departamento"))
    revision: str = Field("", validation_alias=AliasChoices("revision", "revisao"))
    publish_date: str = Field(
        "", validation_alias=AliasChoices("publish_date", "publishDate", "data_publicacao")
    )
    effective_date: str = Field(
        "", validation_alias=AliasChoices("effective_date", "effectiveDate", "data_vigencia")
    )

    def merged(self, partial: dict[str, str]) -> "DraftMetadata":
        """Return a copy with the non-empty values of ``partial`` applied."""
        incoming = DraftMetadata.model_validate(partial)
        updates = {
            name: value
            for name, value in incoming.model_dump().items()
            if name in incoming.model_fields_set and value
        }
        return self.model_copy(update=updates)


class TableData(BaseModel):
    """Table parsed from pipe-delimited text.

    ``keys`` holds the normalized form of each header, in header order.
    Every row has an entry for every key; cells missing from a short row
    are ``None``.
    """

    headers: list[str]
    keys: list[str]
    rows: list[dict[str, str | None]] = Field(default_factory=list)

    def labelled_rows(self) -> list[dict[str, str]]:
        """Rows keyed by the original header labels, missing cells as ''."""
        return [
            {header: row.get(key) or "" for header, key in zip(self.headers, self.keys)}
            for row in self.rows
        ]


class Section(BaseModel):
    """One titled block of document content, in reading order."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(validation_alias=AliasChoices("title", "titulo"))
    body_text: str = Field(
        "", validation_alias=AliasChoices("body_text", "bodyText", "paragrafo", "body")
    )
    table: TableData | None = None
    post_table_text: str | None = Field(
        None,
        validation_alias=AliasChoices("post_table_text", "postTableText", "paragrafo_pos_tabela"),
    )


class DraftContent(BaseModel):
    """Editable content of a draft: loose source text plus its parsed form."""

    markdown: str = ""
    sections: list[Section] = Field(default_factory=list)


class ParsedDocument(BaseModel):
    """Parser output."""

    metadata: DraftMetadata
    sections: list[Section]


class Draft(BaseModel):
    """Editable, pre-binary representation of a document."""

    id: int
    title: str
    status: DraftStatus = DraftStatus.draft
    metadata: DraftMetadata = Field(default_factory=DraftMetadata)
    content: DraftContent = Field(default_factory=DraftContent)
    local_file_ref: str
    created_at: datetime
    last_modified_at: datetime


class DraftFileStatus(BaseModel):
    """Draft status together with the state of its local file."""

    draft_id: int
    title: str
    status: DraftStatus
    metadata: DraftMetadata
    file_path: str
    file_exists: bool
    file_size: int = 0
    file_modified_at: datetime | None = None
    shareable_link: str | None = None
