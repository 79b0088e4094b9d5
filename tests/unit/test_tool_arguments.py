"""Unit tests for draft tool argument shapes, path extraction and intent detection."""

import pytest
from pydantic import ValidationError

from draftsync.app.models.tools import RendererResult
from draftsync.app.orchestration.arguments import (
    ARGUMENT_SHAPES,
    CreateDraftArgs,
    GenerateDraftArgs,
    UpdateDraftArgs,
)
from draftsync.app.orchestration.intent import looks_like_modification_request
from draftsync.app.orchestration.paths import (
    ArgumentPathSource,
    PathExtractor,
    StructuredResultPathSource,
    TextPatternPathSource,
)


class TestArgumentShapes:
    """Test normalization of model-supplied arguments."""

    def test_create_with_plain_text(self) -> None:
        args = CreateDraftArgs.model_validate({"title": "Policy", "content": "# A"})

        assert args.title == "Policy"
        assert args.content == "# A"
        assert args.metadata is None

    def test_create_with_object_content_splits_metadata(self) -> None:
        args = CreateDraftArgs.model_validate(
            {
                "title": "Policy",
                "content": {
                    "assunto": "Remote work",
                    "codigo": "POL-3",
                    "markdownContent": "# Purpose\ntext",
                    "unrelated": True,
                },
            }
        )

        assert args.content == "# Purpose\ntext"
        assert args.metadata == {"assunto": "Remote work", "codigo": "POL-3"}

    def test_object_content_with_section_list(self) -> None:
        args = UpdateDraftArgs.model_validate(
            {"id": 3, "content": {"secao": [{"titulo": "A", "paragrafo": "b"}]}}
        )

        assert args.draft_id == 3
        assert isinstance(args.content, list)
        assert args.content[0].title == "A"

    def test_explicit_metadata_is_kept_alongside_content_metadata(self) -> None:
        args = UpdateDraftArgs.model_validate(
            {
                "draftId": 1,
                "metadata": {"revisao": "2"},
                "content": {"departamento": "HR", "markdown": "# A"},
            }
        )

        assert args.metadata == {"revisao": "2", "departamento": "HR"}
        assert args.content == "# A"

    def test_update_without_content(self) -> None:
        args = UpdateDraftArgs.model_validate({"id": "5"})

        assert args.draft_id == 5
        assert args.content is None

    def test_create_requires_title(self) -> None:
        with pytest.raises(ValidationError):
            CreateDraftArgs.model_validate({"content": "# A"})

    def test_draft_id_must_be_integer(self) -> None:
        with pytest.raises(ValidationError):
            GenerateDraftArgs.model_validate({"id": "abc"})

    def test_alias_operation_shares_shape(self) -> None:
        assert ARGUMENT_SHAPES["generate_document_from_draft"] is GenerateDraftArgs


class TestPathExtraction:
    """Test output path sources in priority order."""

    def test_argument_source_wins(self) -> None:
        extractor = PathExtractor.default()
        result = RendererResult(text="Saved /out/other.docx", structured={"result_path": "/x.docx"})

        assert extractor.extract({"output_path": "/out/a.docx"}, result) == "/out/a.docx"

    def test_structured_result_before_text(self) -> None:
        extractor = PathExtractor.default()
        result = RendererResult(text="Saved /out/other.docx", structured={"result_path": "/x.docx"})

        assert extractor.extract({}, result) == "/x.docx"

    def test_text_pattern_posix_and_windows(self) -> None:
        source = TextPatternPathSource(".docx")

        posix = RendererResult(text="Document saved at /srv/out/Policy_1.docx successfully")
        windows = RendererResult(text="Document saved at C:\\out\\Policy 1.docx.")

        assert source.extract({}, posix) == "/srv/out/Policy_1.docx"
        assert source.extract({}, windows) == "C:\\out\\Policy 1.docx"

    def test_nothing_found(self) -> None:
        extractor = PathExtractor(
            [ArgumentPathSource(), StructuredResultPathSource(), TextPatternPathSource()]
        )

        assert extractor.extract({"title": "x"}, RendererResult(text="ok")) is None


class TestModificationIntent:
    """Test the keyword heuristic."""

    @pytest.mark.parametrize(
        "utterance",
        [
            "Please change the scope section",
            "Add a table with the limits",
            "Altere o título para Política de Férias",
            "Adicione uma seção sobre reembolso",
            "Inclua os gerentes na tabela",
            "Cambia el párrafo final",
            "Elimina la sección dos",
        ],
    )
    def test_detects_modification(self, utterance: str) -> None:
        assert looks_like_modification_request(utterance)

    @pytest.mark.parametrize(
        "utterance",
        [
            "What does the policy say about managers?",
            "Mostre o documento",
            "",
            "Thanks!",
            "What is the office address?",
            "Is there an alternative policy?",
            "Open the editor",
            "Including managers, how many roles exist?",
            "Is this an exclusive benefit?",
        ],
    )
    def test_ignores_questions(self, utterance: str) -> None:
        assert not looks_like_modification_request(utterance)
