"""Renderer adapter - Model Context Protocol client (tools/list, tools/call).

Each operation opens its own initialized session, over streamable HTTP when the
renderer runs as a service, or over stdio when it is spawned as a subprocess.
"""

import logging
import os
import shlex
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import timedelta
from typing import Any

import httpx
from mcp import ClientSession, McpError, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamablehttp_client
from mcp.types import TextContent

from draftsync.app.errors import RendererError
from draftsync.app.models.tools import RendererResult

logger = logging.getLogger(__name__)

# Yields a session on which initialize() has already completed
SessionFactory = Callable[[], AbstractAsyncContextManager[ClientSession]]


def streamable_http_sessions(url: str, *, timeout: float = 60.0) -> SessionFactory:
    """Session factory for a renderer served over streamable HTTP."""
    read_timeout = timedelta(seconds=timeout)

    @asynccontextmanager
    async def open_session() -> AsyncIterator[ClientSession]:
        async with streamablehttp_client(url, timeout=read_timeout) as (read, write, _):
            async with ClientSession(read, write, read_timeout_seconds=read_timeout) as session:
                await session.initialize()
                yield session

    return open_session


def stdio_sessions(
    command: str, *, cwd: str | None = None, timeout: float = 60.0
) -> SessionFactory:
    """Session factory for a renderer spawned as a subprocess speaking stdio."""
    program, *args = shlex.split(command)
    params = StdioServerParameters(command=program, args=args, cwd=cwd, env=dict(os.environ))
    read_timeout = timedelta(seconds=timeout)

    @asynccontextmanager
    async def open_session() -> AsyncIterator[ClientSession]:
        async with stdio_client(params) as (read, write):
            async with ClientSession(read, write, read_timeout_seconds=read_timeout) as session:
                await session.initialize()
                yield session

    return open_session


class McpRendererClient:
    """Client for an external document renderer exposing named MCP tools."""

    def __init__(self, sessions: SessionFactory) -> None:
        """Initialize client.

        Args:
            sessions: Opens an initialized MCP session (see the factories above)
        """
        self._sessions = sessions

    async def list_tools(self) -> list[dict[str, Any]]:
        """Return the renderer's tool declarations ({name, description, inputSchema})."""
        try:
            async with self._sessions() as session:
                result = await session.list_tools()
        except (McpError, httpx.HTTPError, OSError, ExceptionGroup) as e:
            raise RendererError(f"Renderer tools/list failed: {_describe(e)}") from e

        return [
            {
                "name": tool.name,
                "description": tool.description or "",
                "inputSchema": tool.inputSchema,
            }
            for tool in result.tools
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> RendererResult:
        """Invoke a named renderer operation.

        Raises:
            RendererError: Transport failure, protocol error, or tool-level error result
        """
        try:
            async with self._sessions() as session:
                result = await session.call_tool(name, arguments)
        except (McpError, httpx.HTTPError, OSError, ExceptionGroup) as e:
            raise RendererError(f"Renderer {name} failed: {_describe(e)}") from e

        text = "\n".join(
            item.text for item in result.content if isinstance(item, TextContent) and item.text
        )
        if result.isError:
            raise RendererError(text or f"Renderer operation {name} failed")

        structured = result.structuredContent
        logger.debug(f"Renderer {name} returned {len(text)} chars")
        return RendererResult(
            text=text,
            structured=structured if isinstance(structured, dict) else None,
        )


def _describe(error: BaseException) -> str:
    """Innermost messages of an exception group, or the error itself."""
    if isinstance(error, BaseExceptionGroup):
        return "; ".join(_describe(inner) for inner in error.exceptions)
    return str(error) or type(error).__name__
