"""Gateway facade: the surface the HTTP layer calls into."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from whistle_gateway.core.formatters import FormatterRegistry
from whistle_gateway.core.turn import AssistantTurnProcessor
from whistle_gateway.mcp.connection import ConnectionManager, SessionFactory
from whistle_gateway.mcp.executor import ToolExecutor
from whistle_gateway.mcp.schema import ToolSchemaStore
from whistle_gateway.mcp.sync import ToolRegistrySynchronizer
from whistle_gateway.types.auth import AuthContext
from whistle_gateway.types.config import GatewayConfig
from whistle_gateway.types.messages import ChatContext, TurnResult
from whistle_gateway.types.providers import CompletionProvider
from whistle_gateway.types.tools import ExecutionResult, ToolDefinition

logger = logging.getLogger(__name__)


class Gateway:
    """Wires the connection manager, schema cache, executor, synchronizer
    and turn processor together.

    Usage::

        async with Gateway(config, provider) as gateway:
            result = await gateway.process_turn("find burgers near me", context)
    """

    def __init__(
        self,
        config: GatewayConfig,
        provider: CompletionProvider,
        session_factory: SessionFactory | None = None,
        formatters: FormatterRegistry | None = None,
    ) -> None:
        self._config = config
        self.connection = ConnectionManager(config.mcp, session_factory=session_factory)
        self.store = ToolSchemaStore(sync_interval=config.sync.schema_ttl)
        self.executor = ToolExecutor(self.connection, self.store, auth_key=config.auth_key)
        self.assistant = AssistantTurnProcessor(
            provider, self.executor, config.assistant, formatters=formatters,
        )
        self.synchronizer = ToolRegistrySynchronizer(
            self.executor.list_tools,
            self.assistant.set_available_tools,
            interval=config.sync.registry_interval,
        )

    @property
    def config(self) -> GatewayConfig:
        return self._config

    def _apply_auth(self, auth: AuthContext | None) -> AuthContext:
        auth = auth or AuthContext()
        # Headers only reach the endpoint on the next connect; the token also
        # travels per call through the sanitizer's auth key.
        if not auth.is_anonymous:
            self.connection.set_auth_context(auth)
        return auth

    async def process_turn(
        self,
        message: str,
        context: ChatContext | None = None,
        auth: AuthContext | None = None,
    ) -> TurnResult:
        auth = self._apply_auth(auth)
        logger.info(
            "Processing assistant turn (has_context=%s, has_auth=%s, user=%s)",
            bool(context), auth.token is not None, auth.user_id or "anonymous",
        )
        return await self.assistant.process_turn(message, context or {}, auth=auth)

    async def execute_named_tool(
        self,
        name: str,
        args: Mapping[str, Any],
        auth: AuthContext | None = None,
    ) -> ExecutionResult:
        auth = self._apply_auth(auth)
        logger.info(
            "Executing named tool %s (keys=%s, has_auth=%s)",
            name, sorted(args), auth.token is not None,
        )
        return await self.executor.execute(name, args, auth=auth)

    async def list_tools(self) -> list[ToolDefinition]:
        return await self.executor.list_tools()

    async def list_resources(self) -> ExecutionResult:
        return await self.executor.list_resources()

    def get_connection_status(self) -> dict[str, Any]:
        return self.connection.status()

    def health(self) -> dict[str, Any]:
        connected = self.connection.connected
        return {
            "status": "healthy" if connected else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "services": {
                "mcp": "connected" if connected else "disconnected",
                "assistant": "available",
            },
            "tools": len(self.store),
        }

    async def start_sync(self) -> None:
        await self.synchronizer.start()

    async def stop_sync(self) -> None:
        await self.synchronizer.stop()

    async def startup(self) -> bool:
        """Connect and start the synchronizer; a failed connect is not fatal."""
        connected = await self.connection.connect()
        if not connected:
            logger.warning("Failed to connect to MCP server, but starting anyway")
        await self.start_sync()
        return connected

    async def shutdown(self) -> None:
        await self.stop_sync()
        await self.connection.disconnect()

    async def __aenter__(self) -> Gateway:
        await self.startup()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()
