"""Connection manager for the single MCP endpoint behind the gateway."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from contextlib import AsyncExitStack
from enum import Enum
from typing import Any

from mcp import ClientSession
from mcp.client.streamable_http import streamablehttp_client
from mcp.types import Implementation

from whistle_gateway.errors import NotConnectedError
from whistle_gateway.types.auth import AuthContext
from whistle_gateway.types.config import MCPConnectionConfig
from whistle_gateway.types.providers import ToolSession
from whistle_gateway.types.tools import ToolDefinition

logger = logging.getLogger(__name__)

SessionFactory = Callable[
    [MCPConnectionConfig, dict[str, str], AsyncExitStack], Awaitable[ToolSession]
]
ConnectListener = Callable[[], Awaitable[Any]]

_BASE_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


async def open_streamable_http_session(
    config: MCPConnectionConfig,
    headers: dict[str, str],
    stack: AsyncExitStack,
) -> ToolSession:
    """Open a streamable-HTTP transport and an initialized ``ClientSession``.

    Everything opened here is registered on *stack*; closing the stack tears
    the session down.
    """
    read_stream, write_stream, _ = await stack.enter_async_context(
        streamablehttp_client(
            config.server_url,
            headers=headers,
            timeout=config.request_timeout,
        )
    )
    session = await stack.enter_async_context(
        ClientSession(
            read_stream,
            write_stream,
            client_info=Implementation(
                name=config.client_name, version=config.client_version,
            ),
        )
    )
    await asyncio.wait_for(session.initialize(), timeout=config.request_timeout)
    return session


class ConnectionManager:
    """Owns the transport session to the MCP endpoint.

    Failed connects are retried in the background with linear backoff
    (``reconnect_base_delay * attempt``) until ``max_reconnect_attempts`` is
    reached. After that the manager stays disconnected until something calls
    :meth:`connect` again.

    Auth headers are captured when a connect starts; :meth:`set_auth` never
    touches a session that is already open.

    Each session lives inside a dedicated owner task that opens the
    transport, waits for a close signal, and closes the transport itself.
    The transport's cancel scopes must be exited by the task that entered
    them, whichever task happened to call :meth:`connect`.
    """

    def __init__(
        self,
        config: MCPConnectionConfig,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self._config = config
        self._session_factory = session_factory or open_streamable_http_session
        self._session: ToolSession | None = None
        self._owner: asyncio.Task[None] | None = None
        self._closing: asyncio.Event | None = None
        self._state = ConnectionState.DISCONNECTED
        self._attempts = 0
        self._auth = AuthContext()
        self._lock = asyncio.Lock()
        self._retry_task: asyncio.Task[None] | None = None
        self._listeners: list[ConnectListener] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def config(self) -> MCPConnectionConfig:
        return self._config

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED and self._session is not None

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def retry_pending(self) -> bool:
        return self._retry_task is not None and not self._retry_task.done()

    @property
    def auth(self) -> AuthContext:
        return self._auth

    def status(self) -> dict[str, Any]:
        return {"connected": self.connected, "attempts": self._attempts}

    def add_connect_listener(self, listener: ConnectListener) -> None:
        """Register a coroutine function awaited after every successful connect."""
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def set_auth(self, token: str | None = None, user_id: str | None = None) -> None:
        """Replace the stored credentials; applied on the next connect."""
        self.set_auth_context(AuthContext(token=token, user_id=user_id))

    def set_auth_context(self, auth: AuthContext) -> None:
        self._auth = auth
        logger.debug(
            "Auth headers updated (token=%s, user_id=%s)",
            auth.token is not None, auth.user_id is not None,
        )

    def headers(self) -> dict[str, str]:
        return {**_BASE_HEADERS, **self._auth.headers()}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        """Open a session if there is none. Returns True when connected."""
        if self.connected:
            return True

        async with self._lock:
            # Another caller may have connected while we waited for the lock.
            if self.connected:
                return True
            ok = await self._open()

        if ok:
            await self._notify_listeners()
        return ok

    async def ensure_connected(self) -> bool:
        if self.connected:
            return True
        return await self.connect()

    async def disconnect(self) -> None:
        """Close the session and transport. Never raises."""
        self._cancel_retry()
        async with self._lock:
            await self._close()
        logger.info("Disconnected from MCP server")

    async def _open(self) -> bool:
        headers = self.headers()
        self._state = ConnectionState.CONNECTING
        logger.info("Connecting to MCP server at %s", self._config.server_url)

        ready: asyncio.Future[ToolSession] = asyncio.get_running_loop().create_future()
        closing = asyncio.Event()
        owner = asyncio.create_task(self._own_session(headers, ready, closing))
        try:
            session = await asyncio.shield(ready)
        except asyncio.CancelledError:
            owner.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await owner
            self._state = ConnectionState.DISCONNECTED
            raise
        except Exception as exc:
            logger.error("Failed to connect to MCP server: %s", exc or type(exc).__name__)
            await owner
            self._state = ConnectionState.DISCONNECTED
            self._schedule_retry()
            return False

        self._session = session
        self._owner = owner
        self._closing = closing
        owner.add_done_callback(self._owner_finished)
        self._state = ConnectionState.CONNECTED
        self._attempts = 0
        self._cancel_retry()
        logger.info("Connected to MCP server")
        return True

    async def _own_session(
        self,
        headers: dict[str, str],
        ready: asyncio.Future[ToolSession],
        closing: asyncio.Event,
    ) -> None:
        """Open the session, hold it until *closing* is set, then close it.

        Open failures are handed to *ready*; close failures are logged.
        """
        try:
            async with AsyncExitStack() as stack:
                session = await self._session_factory(self._config, headers, stack)
                ready.set_result(session)
                await closing.wait()
        except asyncio.CancelledError:
            if not ready.done():
                ready.cancel()
            raise
        except Exception as exc:
            if not ready.done():
                ready.set_exception(exc)
                return
            logger.warning("Error while closing MCP session: %s", exc or type(exc).__name__)

    def _owner_finished(self, task: asyncio.Task[None]) -> None:
        # disconnect() detaches the owner first, so a match means the
        # transport went away on its own.
        if task is not self._owner:
            return
        self._owner = None
        self._closing = None
        self._session = None
        self._state = ConnectionState.DISCONNECTED
        logger.warning("MCP session ended unexpectedly")

    async def _close(self) -> None:
        owner, self._owner = self._owner, None
        closing, self._closing = self._closing, None
        self._session = None
        self._state = ConnectionState.DISCONNECTED
        if owner is None or closing is None:
            return
        closing.set()
        try:
            await asyncio.wait_for(owner, timeout=self._config.request_timeout)
        except asyncio.TimeoutError:
            logger.warning("Timed out closing MCP session")

    async def _notify_listeners(self) -> None:
        for listener in self._listeners:
            try:
                await listener()
            except Exception as exc:
                logger.warning("Connect listener failed: %s", exc)

    # ------------------------------------------------------------------
    # Reconnection
    # ------------------------------------------------------------------

    def _schedule_retry(self) -> None:
        self._cancel_retry()
        if self._attempts >= self._config.max_reconnect_attempts:
            logger.warning(
                "Giving up on MCP server after %d reconnection attempts",
                self._attempts,
            )
            return
        self._attempts += 1
        delay = self._config.reconnect_base_delay * self._attempts
        logger.info(
            "Reconnection attempt %d/%d in %.1fs",
            self._attempts, self._config.max_reconnect_attempts, delay,
        )
        self._retry_task = asyncio.create_task(self._retry_after(delay))

    async def _retry_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        await self.connect()

    def _cancel_retry(self) -> None:
        task, self._retry_task = self._retry_task, None
        # A retry that is itself running connect() must not cancel itself.
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    # ------------------------------------------------------------------
    # Remote operations
    # ------------------------------------------------------------------

    def _require_session(self) -> ToolSession:
        if not self.connected or self._session is None:
            raise NotConnectedError()
        return self._session

    async def list_tools(self) -> list[ToolDefinition]:
        session = self._require_session()
        result = await asyncio.wait_for(
            session.list_tools(), timeout=self._config.request_timeout,
        )
        return [ToolDefinition.from_mcp(tool) for tool in result.tools]

    async def call_tool(self, name: str, args: dict[str, Any]) -> Any:
        session = self._require_session()
        return await asyncio.wait_for(
            session.call_tool(name, args), timeout=self._config.request_timeout,
        )

    async def list_resources(self) -> Any:
        session = self._require_session()
        return await asyncio.wait_for(
            session.list_resources(), timeout=self._config.request_timeout,
        )
