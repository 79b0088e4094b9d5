"""Service wiring - builds every dependency once from settings."""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from draftsync.app.adapters.fixtures import InMemoryRemoteStorage
from draftsync.app.adapters.graph_drive import GraphDriveStorage, static_token_provider
from draftsync.app.adapters.renderer_mcp import (
    McpRendererClient,
    stdio_sessions,
    streamable_http_sessions,
)
from draftsync.app.config import Settings
from draftsync.app.db.engine import (
    create_engine_from_settings,
    create_schema,
    create_session_factory,
)
from draftsync.app.db.inmemory import InMemoryDraftRepository, InMemoryRemoteCopyRepository
from draftsync.app.db.repositories import DraftRepository, RemoteCopyRepository
from draftsync.app.db.sql_repositories import SqlDraftRepository, SqlRemoteCopyRepository
from draftsync.app.drafts.editor import EditorSaveHandler, EditorSession
from draftsync.app.drafts.lifecycle import DraftLifecycleManager
from draftsync.app.llm.client import LLMClient, get_llm_client
from draftsync.app.orchestration.catalog import ToolCatalog
from draftsync.app.orchestration.conversation import ConversationOrchestrator
from draftsync.app.orchestration.dispatcher import ToolDispatcher
from draftsync.app.orchestration.paths import PathExtractor
from draftsync.app.renderer.gateway import DocumentRenderer, RendererGateway
from draftsync.app.sync.synchronizer import FileSynchronizer, RemoteStorage
from draftsync.app.utils.logging import StructuredToolLogger, configure_logging
from draftsync.app.utils.metrics import PrometheusDispatchMetrics, PrometheusSyncMetrics

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler needs, constructed once per process."""

    settings: Settings
    drafts: DraftRepository
    remote_copies: RemoteCopyRepository
    storage: RemoteStorage
    renderer: DocumentRenderer
    synchronizer: FileSynchronizer
    lifecycle: DraftLifecycleManager
    catalog: ToolCatalog
    dispatcher: ToolDispatcher
    orchestrator: ConversationOrchestrator
    editor_session: EditorSession
    editor_saves: EditorSaveHandler
    session: Session | None = None


def build_repositories(
    settings: Settings,
) -> tuple[DraftRepository, RemoteCopyRepository, Session | None]:
    """SQL repositories when a database is configured, in-memory otherwise."""
    if not settings.database_url:
        logger.warning("No DATABASE_URL configured, drafts are kept in memory")
        return InMemoryDraftRepository(), InMemoryRemoteCopyRepository(), None

    engine = create_engine_from_settings(settings)
    create_schema(engine)
    session = create_session_factory(engine)()
    return SqlDraftRepository(session), SqlRemoteCopyRepository(session), session


def build_storage(settings: Settings) -> RemoteStorage:
    """Graph drive storage when credentials are configured, in-memory otherwise."""
    token = settings.graph_access_token
    if token and token.get_secret_value() and settings.graph_user_id:
        logger.info(f"Using Graph drive storage for {settings.graph_user_id}")
        return GraphDriveStorage(
            user_id=settings.graph_user_id,
            token_provider=static_token_provider(token.get_secret_value()),
            folder=settings.remote_folder,
            base_url=settings.graph_base_url,
            timeout=settings.storage_timeout_s,
        )

    logger.warning("No Graph credentials configured, using in-memory remote storage")
    return InMemoryRemoteStorage()


def build_renderer(settings: Settings) -> DocumentRenderer:
    """MCP renderer client, spawned over stdio when a command is configured."""
    if settings.renderer_command:
        logger.info(f"Spawning renderer: {settings.renderer_command}")
        return McpRendererClient(
            stdio_sessions(
                settings.renderer_command,
                cwd=settings.renderer_cwd,
                timeout=settings.renderer_timeout_s,
            )
        )
    return McpRendererClient(
        streamable_http_sessions(settings.renderer_url, timeout=settings.renderer_timeout_s)
    )


def build_services(
    settings: Settings,
    *,
    storage: RemoteStorage | None = None,
    renderer: DocumentRenderer | None = None,
    llm: LLMClient | None = None,
) -> Services:
    """Construct the service graph.

    Args:
        settings: Application settings
        storage: Remote storage override (default: from settings)
        renderer: Renderer override (default: from settings)
        llm: Language-model client override (default: from settings)
    """
    configure_logging(settings.log_level)

    drafts, remote_copies, session = build_repositories(settings)
    storage = storage or build_storage(settings)
    renderer = renderer or build_renderer(settings)

    synchronizer = FileSynchronizer(
        storage,
        remote_copies,
        output_dir=settings.output_dir,
        lock_retry_attempts=settings.lock_retry_attempts,
        lock_retry_delay_s=settings.lock_retry_delay_s,
        materialize_timeout_s=settings.materialize_timeout_s,
        materialize_interval_s=settings.materialize_interval_s,
        metrics=PrometheusSyncMetrics(),
    )
    gateway = RendererGateway(
        renderer,
        template_path=settings.template_path,
        fill_operation=settings.fill_operation,
    )
    lifecycle = DraftLifecycleManager(
        drafts, gateway, synchronizer, extension=settings.document_extension
    )

    # Direct template fills would bypass draft tracking
    catalog = ToolCatalog(renderer, hidden=frozenset({settings.fill_operation}))
    dispatcher = ToolDispatcher(
        lifecycle,
        synchronizer,
        renderer,
        catalog,
        path_extractor=PathExtractor.default(settings.document_extension),
        metrics=PrometheusDispatchMetrics(),
        logger=StructuredToolLogger(),
    )
    orchestrator = ConversationOrchestrator(
        llm or get_llm_client(settings),
        dispatcher,
        catalog,
        lifecycle,
        remote_copies,
        output_dir=synchronizer.output_dir,
        max_tool_rounds=settings.max_tool_rounds,
    )

    return Services(
        settings=settings,
        drafts=drafts,
        remote_copies=remote_copies,
        storage=storage,
        renderer=renderer,
        synchronizer=synchronizer,
        lifecycle=lifecycle,
        catalog=catalog,
        dispatcher=dispatcher,
        orchestrator=orchestrator,
        editor_session=EditorSession(lifecycle, public_base_url=settings.editor_public_base_url),
        editor_saves=EditorSaveHandler(
            lifecycle,
            save_statuses=settings.editor_save_statuses,
            timeout=settings.storage_timeout_s,
        ),
        session=session,
    )
