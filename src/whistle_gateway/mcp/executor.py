"""Tool execution: connect, refresh, sanitize, invoke, wrap."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from whistle_gateway.errors import NotConnectedError, ToolListingError
from whistle_gateway.mcp.connection import ConnectionManager
from whistle_gateway.mcp.sanitizer import DEFAULT_AUTH_KEY, sanitize
from whistle_gateway.mcp.schema import ToolSchemaStore
from whistle_gateway.observability.tracing import span
from whistle_gateway.types.auth import AuthContext
from whistle_gateway.types.tools import ExecutionResult, ToolDefinition

logger = logging.getLogger(__name__)

NOT_CONNECTED = "Not connected to MCP server"


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _result_text(result: Any) -> str:
    """Join the text blocks of an MCP ``CallToolResult``."""
    parts = []
    for item in getattr(result, "content", None) or []:
        text = getattr(item, "text", None)
        if text:
            parts.append(text)
    return "\n".join(parts)


def _to_payload(result: Any) -> Any:
    if hasattr(result, "model_dump"):
        return result.model_dump(mode="json", by_alias=True, exclude_none=True)
    return result


class ToolExecutor:
    """Runs tools on the MCP endpoint and never lets an invocation error escape.

    Parameters
    ----------
    connection:
        The shared :class:`ConnectionManager`.
    store:
        Schema cache consulted for sanitization. A forced refresh is
        registered on every successful connect.
    auth_key:
        Argument name under which a request's token is forwarded to tools
        that declare it.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        store: ToolSchemaStore,
        auth_key: str = DEFAULT_AUTH_KEY,
    ) -> None:
        self._connection = connection
        self._store = store
        self._auth_key = auth_key
        connection.add_connect_listener(self._refresh_after_connect)

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    @property
    def store(self) -> ToolSchemaStore:
        return self._store

    async def _refresh_after_connect(self) -> None:
        await self._store.refresh(self._connection, force=True)

    async def execute(
        self,
        tool_name: str,
        args: Mapping[str, Any],
        auth: AuthContext | None = None,
    ) -> ExecutionResult:
        if not await self._connection.ensure_connected():
            return ExecutionResult.fail(NOT_CONNECTED)

        await self._store.refresh(self._connection, force=False)

        token = auth.token if auth is not None else None
        sanitized = sanitize(
            tool_name, args, self._store, auth_token=token, auth_key=self._auth_key,
        )
        logger.info(
            "Executing MCP tool %s (keys=%s, dropped=%s)",
            tool_name, sorted(sanitized.args), list(sanitized.dropped),
        )

        with span("mcp.call_tool", {
            "tool.name": tool_name,
            "tool.arg_count": len(sanitized.args),
            "tool.dropped_count": len(sanitized.dropped),
        }) as s:
            try:
                raw = await self._connection.call_tool(tool_name, sanitized.args)
            except Exception as exc:
                message = _error_message(exc)
                logger.error("Error executing tool %s: %s", tool_name, message)
                s.set_attribute("tool.success", False)
                return ExecutionResult.fail(message)

            if getattr(raw, "isError", False):
                message = _result_text(raw) or f"Tool {tool_name} reported an error"
                logger.warning("Tool %s returned an error result", tool_name)
                s.set_attribute("tool.success", False)
                return ExecutionResult.fail(message)

            s.set_attribute("tool.success", True)

        logger.info("MCP tool %s executed successfully", tool_name)
        return ExecutionResult.ok(_to_payload(raw))

    async def list_tools(self) -> list[ToolDefinition]:
        """Fetch the live catalogue and store it as the current schema set."""
        if not await self._connection.ensure_connected():
            raise NotConnectedError()
        try:
            tools = await self._connection.list_tools()
        except NotConnectedError:
            raise
        except Exception as exc:
            logger.error("Error listing tools: %s", _error_message(exc))
            raise ToolListingError(_error_message(exc)) from exc
        self._store.replace(tools)
        logger.info("Listed %d MCP tools", len(tools))
        return tools

    async def list_resources(self) -> ExecutionResult:
        if not await self._connection.ensure_connected():
            return ExecutionResult.fail(NOT_CONNECTED)
        try:
            raw = await self._connection.list_resources()
        except Exception as exc:
            logger.error("Error getting resources: %s", _error_message(exc))
            return ExecutionResult.fail(_error_message(exc))
        return ExecutionResult.ok(_to_payload(raw))
