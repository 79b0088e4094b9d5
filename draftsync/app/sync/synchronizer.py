"""File synchronizer - reconciles local output files with their remote copies."""

import asyncio
import logging
import os
import re
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from draftsync.app.db.repositories import RemoteCopyRepository
from draftsync.app.errors import (
    DocumentLocked,
    FileNotFoundInOutput,
    RemoteUnavailable,
    StorageError,
)
from draftsync.app.models.remote import RemoteCopy, UploadedItem
from draftsync.app.sync.locks import is_locked_error
from draftsync.app.sync.waiting import SleepFn, await_condition

logger = logging.getLogger(__name__)

_DRIVE_MARKER_RE = re.compile(r"^(?:[A-Za-z]:[\\/]|\\\\)")

MIME_TYPES = {
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".pdf": "application/pdf",
}
DEFAULT_MIME_TYPE = "application/octet-stream"


def mime_type_for(filename: str) -> str:
    """MIME type by file extension."""
    return MIME_TYPES.get(Path(filename).suffix.lower(), DEFAULT_MIME_TYPE)


def write_file_atomic(path: Path, content: bytes) -> None:
    """Replace ``path`` with ``content`` without exposing a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def is_materialized(path: Path) -> bool:
    """True once the file exists with non-zero size."""
    try:
        return path.is_file() and path.stat().st_size > 0
    except OSError:
        return False


class RemoteStorage(Protocol):
    """Remote storage boundary. Failures raise StorageError."""

    async def upload(self, filename: str, content: bytes, *, mime_type: str) -> UploadedItem:
        """Create or overwrite the remote file named ``filename``."""
        ...

    async def download(self, remote_id: str) -> bytes:
        """Fetch the current bytes of a remote item."""
        ...

    async def find_by_name(self, filename: str) -> str | None:
        """Return the remote id for ``filename``, or None if it does not exist."""
        ...

    async def create_share_link(self, remote_id: str) -> str:
        """Create (or fetch) an organisation-scoped edit link."""
        ...


# Metrics interface (to be implemented by actual metrics system)
class SyncMetrics:
    """Interface for synchronization metrics."""

    def inc_sync(self, direction: str, outcome: str) -> None:
        """Count a pull or push attempt by outcome."""
        pass

    def inc_lock_retry(self) -> None:
        """Count one retry after a lock conflict."""
        pass


class FileSynchronizer:
    """Keeps a named local file and its remote copy in step.

    Pull before a tool touches a file, push after a tool changed it.
    """

    def __init__(
        self,
        storage: RemoteStorage,
        remote_copies: RemoteCopyRepository,
        *,
        output_dir: str | Path,
        lock_retry_attempts: int = 3,
        lock_retry_delay_s: float = 2.0,
        materialize_timeout_s: float = 5.0,
        materialize_interval_s: float = 0.5,
        metrics: SyncMetrics | None = None,
        sleep_fn: SleepFn | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Initialize synchronizer.

        Args:
            storage: Remote storage adapter
            remote_copies: Filename -> RemoteCopy repository
            output_dir: Managed output directory for relative names
            lock_retry_attempts: Total upload attempts while the remote file is locked
            lock_retry_delay_s: Fixed delay between lock retries
            materialize_timeout_s: Default wait for a file to appear
            materialize_interval_s: Default poll interval for that wait
            metrics: Metrics recorder (optional, defaults to no-op)
            sleep_fn: Injectable sleep function (default: asyncio.sleep)
            clock: Injectable monotonic clock for materialization waits
        """
        self._storage = storage
        self._remote_copies = remote_copies
        self.output_dir = Path(output_dir).resolve()
        self._lock_retry_attempts = max(1, lock_retry_attempts)
        self._lock_retry_delay_s = lock_retry_delay_s
        self._materialize_timeout_s = materialize_timeout_s
        self._materialize_interval_s = materialize_interval_s
        self._metrics = metrics or SyncMetrics()
        self._sleep = sleep_fn or asyncio.sleep
        self._clock = clock

    def resolve_path(self, name_or_path: str | Path) -> Path:
        """Absolute path for a bare filename, relative path or absolute path."""
        raw = str(name_or_path).strip()
        if _DRIVE_MARKER_RE.match(raw) or Path(raw).is_absolute():
            return Path(raw)
        return self.output_dir / raw

    def remote_copy_for(self, path: Path) -> RemoteCopy | None:
        """Known RemoteCopy for the file's basename."""
        return self._remote_copies.get(_basename(path))

    async def pull_if_stale(self, path: Path) -> bool:
        """Bring the local file up to date with the remote copy, if one is known.

        Returns:
            True if the local file was (re)written from remote content

        Raises:
            RemoteUnavailable: Download failed and there is no local copy to keep
        """
        filename = _basename(path)
        copy = self._remote_copies.get(filename)

        if copy is not None:
            return await self._download_to(path, copy.remote_id, keep_local_on_failure=True)

        if path.exists():
            # Local is authoritative until something is pushed
            return False

        try:
            remote_id = await self._storage.find_by_name(filename)
        except StorageError as e:
            logger.warning(f"Remote lookup for {filename} failed, continuing without it: {e}")
            self._metrics.inc_sync("pull", "lookup_failed")
            return False

        if remote_id is None:
            self._metrics.inc_sync("pull", "not_found")
            return False

        return await self._download_to(path, remote_id, keep_local_on_failure=False)

    async def push(self, path: Path) -> RemoteCopy:
        """Upload the local file and record its RemoteCopy.

        Lock conflicts are retried ``lock_retry_attempts`` times in total with a
        fixed delay; any other storage failure is raised immediately.

        Raises:
            FileNotFoundInOutput: Local file does not exist
            DocumentLocked: Still locked after all attempts
            StorageError: Any other upload failure
        """
        filename = _basename(path)
        if not path.is_file():
            raise FileNotFoundInOutput(f"File not found: {path}")

        content = path.read_bytes()
        mime_type = mime_type_for(filename)

        item: UploadedItem | None = None
        for attempt in range(1, self._lock_retry_attempts + 1):
            try:
                item = await self._storage.upload(filename, content, mime_type=mime_type)
                break
            except StorageError as e:
                if not is_locked_error(e):
                    self._metrics.inc_sync("push", "failed")
                    raise
                if attempt == self._lock_retry_attempts:
                    self._metrics.inc_sync("push", "locked")
                    raise DocumentLocked(filename, attempt) from e
                logger.warning(
                    f"{filename} is locked (attempt {attempt}/{self._lock_retry_attempts}), "
                    f"retrying in {self._lock_retry_delay_s}s"
                )
                self._metrics.inc_lock_retry()
                await self._sleep(self._lock_retry_delay_s)

        assert item is not None

        try:
            link = await self._storage.create_share_link(item.remote_id)
        except StorageError as e:
            logger.warning(f"Could not create share link for {filename}, using web URL: {e}")
            link = ""

        copy = self._remote_copies.upsert(
            RemoteCopy(
                filename=filename,
                remote_id=item.remote_id,
                shareable_link=link or item.web_url,
                mime_type=mime_type,
            )
        )
        self._metrics.inc_sync("push", "success")
        logger.info(f"Uploaded {filename} as {item.remote_id}")
        return copy

    async def await_materialization(
        self,
        path: Path,
        timeout: float | None = None,
        interval: float | None = None,
    ) -> bool:
        """Wait until ``path`` exists with non-zero size."""
        return await await_condition(
            lambda: is_materialized(path),
            timeout=self._materialize_timeout_s if timeout is None else timeout,
            interval=self._materialize_interval_s if interval is None else interval,
            sleep_fn=self._sleep,
            clock=self._clock,
        )

    def write_local(self, path: Path, content: bytes) -> None:
        """Overwrite a local file as one whole-file replacement."""
        write_file_atomic(path, content)

    async def _download_to(
        self, path: Path, remote_id: str, *, keep_local_on_failure: bool
    ) -> bool:
        filename = _basename(path)
        try:
            content = await self._storage.download(remote_id)
        except StorageError as e:
            if keep_local_on_failure and path.exists():
                logger.warning(
                    f"Download of {filename} failed, using local copy (degraded mode): {e}"
                )
                self._metrics.inc_sync("pull", "degraded")
                return False
            self._metrics.inc_sync("pull", "failed")
            raise RemoteUnavailable(
                f"Could not download {filename} and no local copy exists: {e}"
            ) from e

        write_file_atomic(path, content)
        self._metrics.inc_sync("pull", "success")
        logger.info(f"Pulled {filename} from remote ({len(content)} bytes)")
        return True


def _basename(path: Path | str) -> str:
    # Windows paths keep backslashes in Path.name on POSIX
    return re.split(r"[\\/]", str(path))[-1]
