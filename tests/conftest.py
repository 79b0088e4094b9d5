"""Shared pytest fixtures for all test suites."""

from pathlib import Path

import pytest

from draftsync.app.adapters.fixtures import FixtureRenderer, InMemoryRemoteStorage
from draftsync.app.db.inmemory import InMemoryDraftRepository, InMemoryRemoteCopyRepository
from draftsync.app.drafts.lifecycle import DraftLifecycleManager
from draftsync.app.orchestration.catalog import ToolCatalog
from draftsync.app.orchestration.dispatcher import ToolDispatcher
from draftsync.app.renderer.gateway import RendererGateway
from draftsync.app.sync.synchronizer import FileSynchronizer


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is awaited."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "output"
    directory.mkdir()
    return directory


@pytest.fixture
def storage() -> InMemoryRemoteStorage:
    return InMemoryRemoteStorage()


@pytest.fixture
def remote_copies() -> InMemoryRemoteCopyRepository:
    return InMemoryRemoteCopyRepository()


@pytest.fixture
def drafts() -> InMemoryDraftRepository:
    return InMemoryDraftRepository()


@pytest.fixture
def renderer(output_dir: Path) -> FixtureRenderer:
    return FixtureRenderer(output_dir=output_dir)


@pytest.fixture
def synchronizer(
    storage: InMemoryRemoteStorage,
    remote_copies: InMemoryRemoteCopyRepository,
    output_dir: Path,
    clock: FakeClock,
) -> FileSynchronizer:
    return FileSynchronizer(
        storage,
        remote_copies,
        output_dir=output_dir,
        lock_retry_attempts=3,
        lock_retry_delay_s=2.0,
        sleep_fn=clock.sleep,
        clock=clock,
    )


@pytest.fixture
def lifecycle(
    drafts: InMemoryDraftRepository,
    renderer: FixtureRenderer,
    synchronizer: FileSynchronizer,
) -> DraftLifecycleManager:
    gateway = RendererGateway(renderer, template_path="templates/template.docx")
    return DraftLifecycleManager(drafts, gateway, synchronizer)


@pytest.fixture
def catalog(renderer: FixtureRenderer) -> ToolCatalog:
    return ToolCatalog(renderer)


@pytest.fixture
def dispatcher(
    lifecycle: DraftLifecycleManager,
    synchronizer: FileSynchronizer,
    renderer: FixtureRenderer,
    catalog: ToolCatalog,
) -> ToolDispatcher:
    return ToolDispatcher(lifecycle, synchronizer, renderer, catalog)
