"""Tests for the tool executor."""

import logging

import pytest

from tests.conftest import (
    DOWHISTLE_TOOLS,
    FakeSession,
    SessionFactory,
    mcp_config,
    structured_result,
    text_result,
)
from whistle_gateway.errors import NotConnectedError, ToolListingError
from whistle_gateway.mcp.connection import ConnectionManager
from whistle_gateway.mcp.executor import ToolExecutor
from whistle_gateway.mcp.schema import ToolSchemaStore
from whistle_gateway.types.auth import AuthContext


def _unreachable(**overrides) -> tuple[ToolExecutor, SessionFactory]:
    factory = SessionFactory(ConnectionError("refused"))
    conn = ConnectionManager(mcp_config(**overrides), session_factory=factory)
    return ToolExecutor(conn, ToolSchemaStore()), factory


class TestExecute:
    @pytest.mark.asyncio
    async def test_success_wraps_payload(self, executor, session):
        session.results["search_businesses"] = structured_result({"providers": []})
        result = await executor.execute(
            "search_businesses", {"latitude": 1.0, "longitude": 2.0},
        )
        assert result.success is True
        assert result.error is None
        assert result.data["structuredContent"] == {"providers": []}
        assert result.data["content"][0]["type"] == "text"

    @pytest.mark.asyncio
    async def test_connect_triggers_schema_refresh(self, executor, session):
        await executor.execute("search_businesses", {})
        assert "search_businesses" in executor.store
        assert session.list_calls >= 1

    @pytest.mark.asyncio
    async def test_arguments_sanitized_before_call(self, executor, session):
        await executor.execute(
            "search_businesses",
            {"latitude": 1.0, "longitude": 2.0, "keyword": "tea", "admin": True},
        )
        name, sent = session.calls[-1]
        assert name == "search_businesses"
        assert sent == {"latitude": 1.0, "longitude": 2.0, "keyword": "tea"}

    @pytest.mark.asyncio
    async def test_token_forwarded_only_to_declaring_tools(self, executor, session):
        auth = AuthContext(token="Bearer tok-1", user_id="u1")
        await executor.execute("list_whistles", {}, auth=auth)
        await executor.execute("search_businesses", {"keyword": "x"}, auth=auth)
        assert session.calls[0][1] == {"access_token": "tok-1"}
        assert "access_token" not in session.calls[1][1]

    @pytest.mark.asyncio
    async def test_unknown_tool_args_pass_through(self, executor, session):
        await executor.execute("brand_new_tool", {"foo": 1})
        assert session.calls[-1] == ("brand_new_tool", {"foo": 1})

    @pytest.mark.asyncio
    async def test_invocation_error_becomes_failure(self, executor, session):
        session.results["list_whistles"] = RuntimeError("upstream exploded")
        result = await executor.execute("list_whistles", {})
        assert result.success is False
        assert result.error == "upstream exploded"

    @pytest.mark.asyncio
    async def test_error_without_message_uses_type_name(self, executor, session):
        session.results["list_whistles"] = TimeoutError()
        result = await executor.execute("list_whistles", {})
        assert result.success is False
        assert result.error == "TimeoutError"

    @pytest.mark.asyncio
    async def test_tool_error_result_becomes_failure(self, executor, session):
        session.results["get_user_profile"] = text_result("Invalid token", is_error=True)
        result = await executor.execute("get_user_profile", {})
        assert result.success is False
        assert result.error == "Invalid token"

    @pytest.mark.asyncio
    async def test_not_connected_skips_remote_call(self):
        executor, factory = _unreachable(max_reconnect_attempts=0)
        result = await executor.execute("search_businesses", {"keyword": "x"})
        assert result.success is False
        assert result.error == "Not connected to MCP server"
        assert result.to_dict() == {"success": False, "error": "Not connected to MCP server"}

    @pytest.mark.asyncio
    async def test_not_connected_after_retries_exhausted(self):
        executor, factory = _unreachable(max_reconnect_attempts=2)
        conn = executor.connection
        await conn.connect()
        await conn.connect()
        await conn.disconnect()
        assert conn.attempts == 2

        result = await executor.execute("list_whistles", {})
        assert result.error == "Not connected to MCP server"
        assert not conn.retry_pending

    @pytest.mark.asyncio
    async def test_logs_key_names_not_values(self, executor, caplog):
        caplog.set_level(logging.DEBUG, logger="whistle_gateway")
        await executor.execute(
            "list_whistles",
            {"active_only": True, "secret_field": "hunter2"},
            auth=AuthContext(token="super-secret-token"),
        )
        text = caplog.text
        assert "access_token" in text
        assert "secret_field" in text
        assert "super-secret-token" not in text
        assert "hunter2" not in text


class TestListing:
    @pytest.mark.asyncio
    async def test_list_tools_updates_store(self, executor):
        tools = await executor.list_tools()
        assert {t.name for t in tools} == {t.name for t in DOWHISTLE_TOOLS}
        assert set(executor.store.names) == {t.name for t in DOWHISTLE_TOOLS}

    @pytest.mark.asyncio
    async def test_list_tools_not_connected(self):
        executor, _ = _unreachable(max_reconnect_attempts=0)
        with pytest.raises(NotConnectedError):
            await executor.list_tools()

    @pytest.mark.asyncio
    async def test_list_tools_failure(self):
        session = FakeSession()
        conn = ConnectionManager(mcp_config(), session_factory=SessionFactory(session))
        executor = ToolExecutor(conn, ToolSchemaStore())
        await conn.connect()
        session.list_error = RuntimeError("bad listing")
        with pytest.raises(ToolListingError, match="bad listing"):
            await executor.list_tools()

    @pytest.mark.asyncio
    async def test_list_resources(self, executor):
        result = await executor.list_resources()
        assert result.success is True
        assert result.data == {"resources": []}
