"""Argument shapes for the draft-management tools.

Models tend to send the draft content as one object mixing template metadata
keys with the text (``{"assunto": ..., "markdownContent": ...}``), as bare text,
or as a list of sections. Every shape is normalized here into
``content`` + ``metadata`` before it reaches the lifecycle manager.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from draftsync.app.models.drafts import DraftMetadata, Section

_TEXT_KEYS = ("markdownContent", "markdown_content", "markdown", "text", "body")
_SECTION_KEYS = ("sections", "secao")
_METADATA_KEYS = frozenset(
    name
    for field in DraftMetadata.model_fields.values()
    for name in field.validation_alias.choices  # type: ignore[union-attr]
)


def _split_content(data: dict[str, Any]) -> dict[str, Any]:
    """Flatten an object-shaped ``content`` into content + metadata."""
    content = data.get("content")
    if not isinstance(content, dict):
        return data

    flattened = dict(data)
    metadata = dict(flattened.get("metadata") or {})
    metadata.update({k: v for k, v in content.items() if k in _METADATA_KEYS})
    if metadata:
        flattened["metadata"] = metadata

    flattened["content"] = None
    for key in _TEXT_KEYS:
        if isinstance(content.get(key), str):
            flattened["content"] = content[key]
            break
    else:
        for key in _SECTION_KEYS:
            if isinstance(content.get(key), list):
                flattened["content"] = content[key]
                break
    return flattened


class _ContentArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    content: str | list[Section] | None = Field(
        None,
        validation_alias=AliasChoices(
            "content", "markdownContent", "markdown_content", "markdown", "sections"
        ),
    )
    metadata: dict[str, str | int | float] | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_content(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return _split_content(data)
        return data


class _DraftIdArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    draft_id: int = Field(validation_alias=AliasChoices("draft_id", "draftId", "id"))


class CreateDraftArgs(_ContentArgs):
    """create_draft arguments."""

    title: str = Field(min_length=1)


class GetDraftArgs(_DraftIdArgs):
    """get_draft arguments."""


class UpdateDraftArgs(_DraftIdArgs, _ContentArgs):
    """update_draft arguments. Omitting content only touches the draft."""


class GenerateDraftArgs(_DraftIdArgs):
    """generate_from_draft arguments."""


class PublishDraftArgs(_DraftIdArgs):
    """publish_draft arguments."""


ARGUMENT_SHAPES: dict[str, type[BaseModel]] = {
    "create_draft": CreateDraftArgs,
    "get_draft": GetDraftArgs,
    "update_draft": UpdateDraftArgs,
    "generate_from_draft": GenerateDraftArgs,
    "generate_document_from_draft": GenerateDraftArgs,
    "publish_draft": PublishDraftArgs,
}

DRAFT_OPERATIONS = frozenset(ARGUMENT_SHAPES)
