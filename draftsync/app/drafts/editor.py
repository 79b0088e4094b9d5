"""Collaborative editor boundary: document keys, editor config, save callbacks.

Callback status codes sent by the editor:
    1 - document is being edited
    2 - document is ready for saving
    3 - document saving error
    4 - document closed with no changes
    6 - document is being edited, current state force-saved
    7 - error while force saving
"""

import hashlib
import logging
import time
from typing import Any

import httpx
from pydantic import BaseModel

from draftsync.app.drafts.lifecycle import DraftLifecycleManager
from draftsync.app.errors import DraftNotFound
from draftsync.app.sync.synchronizer import write_file_atomic

logger = logging.getLogger(__name__)


class EditorCallback(BaseModel):
    """Body of the editor's save callback (only the fields used here)."""

    status: int
    url: str | None = None
    key: str | None = None


class EditorSession:
    """Builds what the editor needs to open a draft's file."""

    def __init__(self, lifecycle: DraftLifecycleManager, *, public_base_url: str) -> None:
        self._lifecycle = lifecycle
        self._base_url = public_base_url.rstrip("/")

    def document_key(self, draft_id: int) -> str:
        """Key that changes whenever the file changes, so the editor reloads it."""
        _, path = self._lifecycle.get(draft_id)
        try:
            mtime_ms = int(path.stat().st_mtime * 1000)
        except FileNotFoundError:
            mtime_ms = int(time.time() * 1000)
        return hashlib.md5(f"draft-{draft_id}-{mtime_ms}".encode()).hexdigest()

    def editor_config(
        self, draft_id: int, *, user_id: str = "user1", user_name: str = "User"
    ) -> dict[str, Any]:
        """Editor configuration pointing at the document and callback routes."""
        draft, path = self._lifecycle.get(draft_id)
        return {
            "document": {
                "fileType": path.suffix.lstrip(".") or "docx",
                "key": self.document_key(draft_id),
                "title": path.name,
                "url": f"{self._base_url}/editor/document/{draft_id}",
                "permissions": {"edit": True, "download": True, "print": True},
            },
            "documentType": "word",
            "editorConfig": {
                "callbackUrl": f"{self._base_url}/editor/callback/{draft_id}",
                "mode": "edit",
                "user": {"id": user_id, "name": user_name},
                "customization": {"autosave": True, "forcesave": True},
            },
            "title": draft.title,
        }


class EditorSaveHandler:
    """Accepts saved bytes from the editor into the draft's local file."""

    def __init__(
        self,
        lifecycle: DraftLifecycleManager,
        *,
        save_statuses: tuple[int, ...] = (2, 6),
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize handler.

        Args:
            lifecycle: Draft lifecycle manager
            save_statuses: Callback statuses that carry a document to save
            timeout: Download timeout in seconds
            client: Optional httpx client (for testing with mocks)
        """
        self._lifecycle = lifecycle
        self._save_statuses = save_statuses
        self._timeout = timeout
        self._client = client

    async def handle_callback(self, draft_id: int, callback: EditorCallback) -> dict[str, int]:
        """Fetch the saved document named in the callback and store it."""
        if callback.status not in self._save_statuses:
            logger.debug(f"Editor callback for draft {draft_id}: status {callback.status}")
            return {"error": 0}

        if not callback.url:
            logger.error(f"Editor callback for draft {draft_id} has no download url")
            return {"error": 1}

        close_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
            close_client = True

        try:
            response = await client.get(callback.url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to download edited document for draft {draft_id}: {e}")
            return {"error": 1}
        finally:
            if close_client:
                await client.aclose()

        return await self.process(draft_id, callback.status, response.content)

    async def process(self, draft_id: int, status: int, content: bytes | None) -> dict[str, int]:
        """Overwrite the draft's file and mark it modified for save statuses.

        Returns:
            ``{"error": 0}`` on success or ignored status, ``{"error": 1}`` otherwise
        """
        if status not in self._save_statuses:
            return {"error": 0}
        if not content:
            logger.error(f"Editor save for draft {draft_id} carried no content")
            return {"error": 1}

        try:
            async with self._lifecycle.lock_for(draft_id):
                _, path = self._lifecycle.get(draft_id)
                write_file_atomic(path, content)
                self._lifecycle.mark_modified(draft_id)
        except DraftNotFound:
            logger.error(f"Editor save for unknown draft {draft_id}")
            return {"error": 1}
        except OSError as e:
            logger.error(f"Could not write edited document for draft {draft_id}: {e}")
            return {"error": 1}

        logger.info(f"Editor saved draft {draft_id} ({len(content)} bytes) to {path}")
        return {"error": 0}
