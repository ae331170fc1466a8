"""Test fixtures: a fake MCP session and a scripted completion provider."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Iterable
from contextlib import AsyncExitStack
from typing import Any

import pytest
from mcp.types import CallToolResult, ListToolsResult, TextContent, Tool

from whistle_gateway.mcp.connection import ConnectionManager
from whistle_gateway.mcp.executor import ToolExecutor
from whistle_gateway.mcp.schema import ToolSchemaStore
from whistle_gateway.types.config import MCPConnectionConfig
from whistle_gateway.types.providers import CompletionParams

SEARCH_BUSINESSES = Tool(
    name="search_businesses",
    description="Search nearby businesses and providers",
    inputSchema={
        "type": "object",
        "properties": {
            "latitude": {"type": "number", "description": "Latitude"},
            "longitude": {"type": "number", "description": "Longitude"},
            "radius": {"type": "number", "description": "Search radius in km"},
            "keyword": {"type": "string", "description": "What to look for"},
            "limit": {"type": "integer", "description": "Max results"},
        },
        "required": ["latitude", "longitude"],
    },
)

LIST_WHISTLES = Tool(
    name="list_whistles",
    description="List the user's whistles",
    inputSchema={
        "type": "object",
        "properties": {
            "access_token": {"type": "string", "description": "User access token"},
            "active_only": {"type": "boolean", "description": "Only active whistles"},
        },
        "required": ["access_token"],
    },
)

GET_USER_PROFILE = Tool(
    name="get_user_profile",
    description="Get the authenticated user's profile",
    inputSchema={
        "type": "object",
        "properties": {
            "access_token": {"type": "string", "description": "User access token"},
        },
        "required": ["access_token"],
    },
)

RESEND_OTP = Tool(
    name="resend_otp",
    description="Resend a one-time password",
    inputSchema={
        "type": "object",
        "properties": {"user_id": {"type": "string", "description": "User id"}},
        "required": ["user_id"],
    },
)

DOWHISTLE_TOOLS = [SEARCH_BUSINESSES, LIST_WHISTLES, GET_USER_PROFILE, RESEND_OTP]


def structured_result(payload: dict[str, Any]) -> CallToolResult:
    """A tool result carrying both text and structured content, as FastMCP sends it."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(payload))],
        structuredContent=payload,
    )


def text_result(text: str, is_error: bool = False) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=is_error)


class FakeSession:
    """Stands in for ``mcp.ClientSession``.

    ``results`` maps tool name to a ``CallToolResult`` or an exception to raise.
    """

    def __init__(
        self,
        tools: Iterable[Tool] = (),
        results: dict[str, Any] | None = None,
    ) -> None:
        self.tools = list(tools)
        self.results = dict(results or {})
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.list_calls = 0
        self.list_error: Exception | None = None
        self.closed = False
        self.opened_in: asyncio.Task[Any] | None = None
        self.closed_in: asyncio.Task[Any] | None = None

    async def list_tools(self) -> ListToolsResult:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return ListToolsResult(tools=list(self.tools))

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        self.calls.append((name, dict(arguments or {})))
        outcome = self.results.get(name, text_result("ok"))
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def list_resources(self) -> dict[str, Any]:
        return {"resources": []}


class SessionFactory:
    """Scripted session factory: each connect pops the next outcome.

    An exception outcome makes that connect fail; once the script runs out
    the last outcome repeats.
    """

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.headers: list[dict[str, str]] = []

    @property
    def attempts(self) -> int:
        return len(self.headers)

    async def __call__(
        self,
        config: MCPConnectionConfig,
        headers: dict[str, str],
        stack: AsyncExitStack,
    ) -> Any:
        self.headers.append(dict(headers))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome

        outcome.opened_in = asyncio.current_task()

        async def _close() -> None:
            outcome.closed = True
            outcome.closed_in = asyncio.current_task()

        stack.push_async_callback(_close)
        return outcome


class ScriptedProvider:
    """A deterministic completion provider returning canned replies."""

    def __init__(self, *replies: str | BaseException, model: str = "mock-model") -> None:
        self._replies = list(replies)
        self._model = model
        self.prompts: list[tuple[str, str]] = []

    @property
    def model_id(self) -> str:
        return self._model

    async def complete(self, system: str, message: str, params: CompletionParams) -> str:
        self.prompts.append((system, message))
        reply = self._replies.pop(0) if self._replies else ""
        if isinstance(reply, BaseException):
            raise reply
        return reply


def mcp_config(**overrides: Any) -> MCPConnectionConfig:
    values: dict[str, Any] = {
        "server_url": "http://mcp.test/mcp",
        "request_timeout": 1.0,
        "reconnect_base_delay": 1000.0,
    }
    values.update(overrides)
    return MCPConnectionConfig(**values)


@pytest.fixture
def session() -> FakeSession:
    return FakeSession(tools=DOWHISTLE_TOOLS)


@pytest.fixture
def connection(session: FakeSession) -> ConnectionManager:
    return ConnectionManager(mcp_config(), session_factory=SessionFactory(session))


@pytest.fixture
def store() -> ToolSchemaStore:
    return ToolSchemaStore(sync_interval=300.0)


@pytest.fixture
def executor(connection: ConnectionManager, store: ToolSchemaStore) -> ToolExecutor:
    return ToolExecutor(connection, store)
