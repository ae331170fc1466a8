"""Tests for the Gateway facade."""

import pytest

from tests.conftest import (
    DOWHISTLE_TOOLS,
    FakeSession,
    ScriptedProvider,
    SessionFactory,
    mcp_config,
    structured_result,
)
from whistle_gateway.core.gateway import Gateway
from whistle_gateway.errors import NotConnectedError
from whistle_gateway.types.auth import AuthContext
from whistle_gateway.types.config import GatewayConfig, SyncConfig


def _gateway(*replies, session=None, factory=None, **mcp_overrides) -> Gateway:
    config = GatewayConfig(
        mcp=mcp_config(**mcp_overrides),
        sync=SyncConfig(schema_ttl=300.0, registry_interval=3600.0),
    )
    factory = factory or SessionFactory(session or FakeSession(tools=DOWHISTLE_TOOLS))
    return Gateway(config, ScriptedProvider(*replies), session_factory=factory)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_startup_publishes_catalogue(self):
        gateway = _gateway()
        async with gateway:
            assert gateway.connection.connected
            assert gateway.synchronizer.running
            names = {t.name for t in gateway.assistant.available_tools}
            assert names == {t.name for t in DOWHISTLE_TOOLS}
        assert not gateway.synchronizer.running
        assert not gateway.connection.connected

    @pytest.mark.asyncio
    async def test_startup_survives_unreachable_endpoint(self):
        gateway = _gateway(factory=SessionFactory(ConnectionError("refused")),
                           max_reconnect_attempts=0)
        assert await gateway.startup() is False
        assert gateway.synchronizer.running
        assert gateway.assistant.available_tools == []
        await gateway.shutdown()

    @pytest.mark.asyncio
    async def test_health(self):
        gateway = _gateway()
        assert gateway.health()["status"] == "unhealthy"
        async with gateway:
            health = gateway.health()
            assert health["status"] == "healthy"
            assert health["services"]["mcp"] == "connected"
            assert health["tools"] == len(DOWHISTLE_TOOLS)
            assert gateway.get_connection_status() == {"connected": True, "attempts": 0}


class TestRequests:
    @pytest.mark.asyncio
    async def test_process_turn_end_to_end(self):
        session = FakeSession(tools=DOWHISTLE_TOOLS)
        session.results["list_whistles"] = structured_result({"whistles": []})
        gateway = _gateway('{"tool":"list_whistles","args":{}}', session=session)
        async with gateway:
            result = await gateway.process_turn(
                "show my whistles", auth=AuthContext(token="Bearer abc", user_id="u1"),
            )
        assert result.response.text == "No whistles found."
        assert session.calls == [("list_whistles", {"access_token": "abc"})]

    @pytest.mark.asyncio
    async def test_execute_named_tool_sanitizes(self):
        session = FakeSession(tools=DOWHISTLE_TOOLS)
        gateway = _gateway(session=session)
        async with gateway:
            result = await gateway.execute_named_tool(
                "search_businesses", {"latitude": 1, "longitude": 2, "debug": True},
            )
        assert result.success
        assert session.calls == [("search_businesses", {"latitude": 1, "longitude": 2})]

    @pytest.mark.asyncio
    async def test_auth_recorded_for_next_connect(self):
        factory = SessionFactory(FakeSession(tools=DOWHISTLE_TOOLS))
        gateway = _gateway(factory=factory)
        await gateway.execute_named_tool("list_whistles", {}, auth=AuthContext(token="t1"))
        assert factory.headers[0]["Authorization"] == "Bearer t1"
        await gateway.shutdown()

    @pytest.mark.asyncio
    async def test_anonymous_request_keeps_stored_auth(self):
        gateway = _gateway()
        gateway.connection.set_auth("stored")
        await gateway.execute_named_tool("search_businesses", {})
        assert gateway.connection.auth.token == "stored"
        await gateway.shutdown()

    @pytest.mark.asyncio
    async def test_list_tools_not_connected(self):
        gateway = _gateway(factory=SessionFactory(ConnectionError("refused")),
                           max_reconnect_attempts=0)
        with pytest.raises(NotConnectedError):
            await gateway.list_tools()
        result = await gateway.list_resources()
        assert result.error == "Not connected to MCP server"
