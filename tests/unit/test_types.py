"""Tests for whistle_gateway.types."""

import dataclasses

import pytest

from tests.conftest import SEARCH_BUSINESSES
from whistle_gateway.types.auth import AuthContext, normalize_bearer, strip_bearer
from whistle_gateway.types.messages import Action, ActionType, AIResponse, TurnResult
from whistle_gateway.types.tools import ExecutionResult, ToolCallDirective, ToolDefinition


class TestAuth:
    def test_bearer_helpers(self):
        assert normalize_bearer("abc") == "Bearer abc"
        assert normalize_bearer("Bearer abc") == "Bearer abc"
        assert normalize_bearer("bearer abc") == "Bearer abc"
        assert strip_bearer("Bearer abc") == "abc"
        assert strip_bearer("abc") == "abc"

    def test_context_strips_prefix(self):
        auth = AuthContext(token="Bearer tok", user_id="u1")
        assert auth.token == "tok"
        assert auth.headers() == {"Authorization": "Bearer tok", "X-User-Id": "u1"}

    def test_empty_values_are_anonymous(self):
        auth = AuthContext(token="", user_id="")
        assert auth.is_anonymous
        assert auth.headers() == {}

    def test_context_is_immutable(self):
        auth = AuthContext(token="tok")
        with pytest.raises(dataclasses.FrozenInstanceError):
            auth.token = "other"


class TestTools:
    def test_from_mcp(self):
        tool = ToolDefinition.from_mcp(SEARCH_BUSINESSES)
        assert tool.name == "search_businesses"
        assert tool.declares("keyword")
        assert tool.to_dict()["inputSchema"]["required"] == ["latitude", "longitude"]

    def test_directive_to_dict(self):
        d = ToolCallDirective(tool="list_whistles", args={"active_only": True})
        assert d.to_dict() == {"tool": "list_whistles", "args": {"active_only": True}}

    def test_failed_result_always_has_error(self):
        assert ExecutionResult(success=False).error == "Unknown error"
        assert ExecutionResult.fail("").error == "Unknown error"

    def test_result_to_dict(self):
        assert ExecutionResult.ok({"a": 1}).to_dict() == {"success": True, "data": {"a": 1}}
        assert ExecutionResult.fail("boom").to_dict() == {"success": False, "error": "boom"}


class TestMessages:
    def test_response_to_dict(self):
        response = AIResponse(
            text="hi",
            suggestions=["Book a ride"],
            actions=[Action(ActionType.LOCATION_REQUEST)],
        )
        assert response.to_dict() == {
            "text": "hi",
            "suggestions": ["Book a ride"],
            "actions": [{"type": "location_request", "data": {}}],
        }

    def test_find_action(self):
        response = AIResponse(text="", actions=[Action(ActionType.TOOL_CALL, {"tool": "x"})])
        assert response.find_action(ActionType.TOOL_CALL).data == {"tool": "x"}
        assert response.find_action(ActionType.BOOKING_INTENT) is None

    def test_turn_result_to_dict(self):
        turn = TurnResult(
            response=AIResponse(text="No whistles found."),
            tool_executed=True,
            tool_result=ExecutionResult.ok({}),
        )
        out = turn.to_dict()
        assert out["toolExecuted"] is True
        assert out["toolResult"] == {"success": True, "data": {}}
