"""
Long-lived MCP connection to DeepWiki over SSE.

DeepWikiConnection connects once and reuses the session:

- Concurrent first callers await one shared "connecting" future, so
  only one connection attempt is ever in flight
- A transport error, a close, or a failed call resets the manager to
  disconnected; the next call reconnects transparently

The session's context managers are entered and exited inside one
dedicated runner task (anyio cancel scopes must not cross tasks).
Everything runs on one event loop, so no locks are needed.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncContextManager, AsyncIterator, Callable, Dict, Optional

from mcp import ClientSession, types
from mcp.client.sse import sse_client

from .types import DEEPWIKI_SSE_URL, DEEPWIKI_TIMEOUT

logger = logging.getLogger("antv-mcp.deepwiki")

SessionFactory = Callable[[], AsyncContextManager[ClientSession]]


@asynccontextmanager
async def open_sse_session(
    url: str = DEEPWIKI_SSE_URL,
    timeout: float = DEEPWIKI_TIMEOUT
) -> AsyncIterator[ClientSession]:
    """Open and initialize an MCP client session over SSE."""
    async with sse_client(url, timeout=timeout) as (read_stream, write_stream):
        async with ClientSession(read_stream, write_stream) as session:
            await session.initialize()
            yield session


class DeepWikiConnection:
    """
    Connection manager for the DeepWiki MCP server.

    Holds at most one session. Created once by the server and injected
    into whatever needs DeepWiki; there is no module-level instance.
    """

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        """
        Args:
            session_factory: Returns an async context manager yielding an
                initialized ClientSession. Defaults to open_sse_session.
        """
        self._session_factory = session_factory or open_sse_session
        self._session: Optional[ClientSession] = None
        self._connecting: Optional["asyncio.Future[ClientSession]"] = None
        self._closed: Optional[asyncio.Event] = None
        self._runner: Optional["asyncio.Task[None]"] = None

    @property
    def connected(self) -> bool:
        return self._session is not None

    async def get_session(self) -> ClientSession:
        """
        Return the live session, connecting first if needed.

        Raises:
            Exception: Whatever the connection attempt raised
        """
        if self._session is not None:
            return self._session

        if self._connecting is None:
            logger.info("DeepWiki MCP: connecting...")
            self._connecting = asyncio.get_running_loop().create_future()
            self._closed = asyncio.Event()
            self._runner = asyncio.create_task(self._run(self._connecting, self._closed))

        return await asyncio.shield(self._connecting)

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> types.CallToolResult:
        """
        Call a remote tool, resetting the connection if the call fails.
        """
        session = await self.get_session()
        try:
            return await session.call_tool(name, arguments)
        except Exception:
            logger.warning("DeepWiki MCP: call failed, resetting connection")
            await self.reset()
            raise

    async def reset(self) -> None:
        """Drop the current connection; the next call reconnects."""
        if self._closed is not None:
            self._closed.set()
        self._session = None
        self._connecting = None
        self._closed = None
        self._runner = None

    async def aclose(self) -> None:
        """Close the connection and wait for the runner to finish."""
        runner = self._runner
        await self.reset()
        if runner is not None:
            logger.info("DeepWiki MCP: closing connection...")
            await runner

    async def _run(self, ready: "asyncio.Future[ClientSession]", closed: asyncio.Event) -> None:
        try:
            async with self._session_factory() as session:
                if self._closed is closed:
                    self._session = session
                    self._connecting = None
                ready.set_result(session)
                logger.info("DeepWiki MCP: connected")
                await closed.wait()
        except Exception as e:
            if not ready.done():
                logger.error(f"DeepWiki MCP: connection failed: {e}")
                ready.set_exception(e)
            else:
                logger.error(f"DeepWiki MCP transport error: {e}")
        finally:
            if not ready.done():
                ready.set_exception(ConnectionError("DeepWiki connection closed before it was established"))
            if self._closed is closed:
                self._session = None
                self._connecting = None
                self._closed = None
                self._runner = None
            logger.info("DeepWiki MCP: connection closed")
