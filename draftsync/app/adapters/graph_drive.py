"""Remote storage adapter for a OneDrive/SharePoint drive via Microsoft Graph."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import quote

import httpx

from draftsync.app.errors import StorageError
from draftsync.app.models.remote import UploadedItem

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str]]


def static_token_provider(token: str) -> TokenProvider:
    """Token provider returning a pre-acquired bearer token."""

    async def provide() -> str:
        return token

    return provide


class GraphDriveStorage:
    """Files under one folder of a user's drive.

    Docs: https://learn.microsoft.com/graph/api/resources/driveitem
    """

    def __init__(
        self,
        *,
        user_id: str,
        token_provider: TokenProvider,
        folder: str = "MCP-Output",
        base_url: str = "https://graph.microsoft.com/v1.0",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize adapter.

        Args:
            user_id: Drive owner (user id or principal name)
            token_provider: Async callable returning a bearer token
            folder: Folder under the drive root holding synchronized files
            base_url: Graph API base URL
            timeout: Transport timeout in seconds
            client: Optional httpx client (for testing with mocks)
        """
        self._drive_url = f"{base_url.rstrip('/')}/users/{quote(user_id, safe='@')}/drive"
        self._folder = folder.strip("/")
        self._token_provider = token_provider
        self._timeout = timeout
        self._client = client

    async def upload(self, filename: str, content: bytes, *, mime_type: str) -> UploadedItem:
        """Create or overwrite ``folder/filename`` (simple upload)."""
        response = await self._request(
            "PUT",
            f"{self._item_path(filename)}:/content",
            content=content,
            headers={"Content-Type": mime_type},
        )
        data = response.json()
        return UploadedItem(remote_id=data["id"], web_url=data.get("webUrl", ""))

    async def download(self, remote_id: str) -> bytes:
        """Download item content, bypassing intermediate caches."""
        response = await self._request(
            "GET",
            f"{self._drive_url}/items/{quote(remote_id)}/content",
            headers={"Cache-Control": "no-cache", "Pragma": "no-cache"},
        )
        return response.content

    async def find_by_name(self, filename: str) -> str | None:
        """Look up ``folder/filename``; a 404 means it does not exist."""
        try:
            response = await self._request("GET", self._item_path(filename))
        except StorageError as e:
            if e.status_code == 404:
                return None
            raise
        return response.json().get("id")

    async def create_share_link(self, remote_id: str) -> str:
        """Create an organisation-scoped edit link."""
        response = await self._request(
            "POST",
            f"{self._drive_url}/items/{quote(remote_id)}/createLink",
            json={"type": "edit", "scope": "organization"},
        )
        return response.json().get("link", {}).get("webUrl", "")

    def _item_path(self, filename: str) -> str:
        return f"{self._drive_url}/root:/{quote(f'{self._folder}/{filename}')}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        token = await self._token_provider()
        headers = {"Authorization": f"Bearer {token}", **kwargs.pop("headers", {})}

        close_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
            close_client = True

        try:
            response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise StorageError(f"{method} {url} failed: {e}") from e
        finally:
            if close_client:
                await client.aclose()

        if response.is_error:
            raise _storage_error(method, url, response)
        return response


def _storage_error(method: str, url: str, response: httpx.Response) -> StorageError:
    """Map a Graph error response to StorageError, keeping status and error code."""
    provider_code: str | None = None
    detail = response.text
    try:
        body = response.json()
    except ValueError:
        body = {}
    error = body.get("error", {}) if isinstance(body, dict) else {}
    if isinstance(error, dict):
        provider_code = error.get("code")
        detail = error.get("message") or detail

    logger.debug(f"Graph {method} {url} -> {response.status_code} {provider_code}")
    return StorageError(
        f"Graph request failed ({response.status_code}): {detail}",
        status_code=response.status_code,
        provider_code=provider_code,
    )
