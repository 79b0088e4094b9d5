"""Unit tests for in-memory repositories."""

from draftsync.app.db.inmemory import InMemoryDraftRepository, InMemoryRemoteCopyRepository
from draftsync.app.models.drafts import DraftContent, DraftMetadata, DraftStatus, Section
from draftsync.app.models.remote import RemoteCopy


def _create(repo: InMemoryDraftRepository, title: str = "Policy") -> int:
    draft = repo.create(
        title,
        DraftContent(markdown="# A", sections=[Section(title="A")]),
        metadata=DraftMetadata(subject=title),
        local_file_ref=f"{title}.docx",
    )
    return draft.id


class TestInMemoryDraftRepository:
    """Test InMemoryDraftRepository."""

    def test_create_assigns_ids_and_draft_status(self) -> None:
        repo = InMemoryDraftRepository()

        first = _create(repo, "One")
        second = _create(repo, "Two")

        assert (first, second) == (1, 2)
        draft = repo.get(first)
        assert draft is not None
        assert draft.status == DraftStatus.draft
        assert draft.local_file_ref == "One.docx"
        assert draft.created_at == draft.last_modified_at

    def test_unknown_id_returns_none(self) -> None:
        repo = InMemoryDraftRepository()

        assert repo.get(99) is None
        assert repo.touch(99) is None
        assert repo.set_status(99, DraftStatus.generated) is None
        assert repo.set_metadata(99, {"subject": "x"}) is None
        assert repo.set_content(99, DraftContent()) is None

    def test_touch_moves_last_modified_forward(self) -> None:
        repo = InMemoryDraftRepository()
        draft_id = _create(repo)
        before = repo.get(draft_id)
        assert before is not None

        after = repo.touch(draft_id)

        assert after is not None
        assert after.last_modified_at >= before.last_modified_at
        assert after.content == before.content

    def test_set_metadata_merges(self) -> None:
        repo = InMemoryDraftRepository()
        draft_id = _create(repo)

        draft = repo.set_metadata(draft_id, {"codigo": "POL-9"})

        assert draft is not None
        assert draft.metadata.code == "POL-9"
        assert draft.metadata.subject == "Policy"

    def test_list_recent_orders_by_modification(self) -> None:
        repo = InMemoryDraftRepository()
        first = _create(repo, "One")
        second = _create(repo, "Two")

        repo.touch(first)

        assert [d.id for d in repo.list_recent()] == [first, second]
        assert len(repo.list_recent(limit=1)) == 1

    def test_get_by_file_ref(self) -> None:
        repo = InMemoryDraftRepository()
        first = _create(repo, "One")
        _create(repo, "Two")

        found = repo.get_by_file_ref("One.docx")

        assert found is not None
        assert found.id == first
        assert repo.get_by_file_ref("Three.docx") is None


def test_remote_copy_upsert_replaces_entry() -> None:
    repo = InMemoryRemoteCopyRepository()

    repo.upsert(RemoteCopy(filename="a.docx", remote_id="1", shareable_link="old"))
    repo.upsert(RemoteCopy(filename="a.docx", remote_id="1", shareable_link="new"))

    copy = repo.get("a.docx")
    assert copy is not None
    assert copy.shareable_link == "new"
    assert len(repo.list_all()) == 1
    assert repo.get("missing.docx") is None
