"""Assistant response types returned to the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from whistle_gateway.types.tools import ExecutionResult

ChatContext = dict[str, Any]


class ActionType(Enum):
    """Kinds of action attached to an assistant response."""

    TOOL_CALL = "tool_call"
    BOOKING_INTENT = "booking_intent"
    LOCATION_REQUEST = "location_request"


@dataclass(frozen=True, slots=True)
class Action:
    type: ActionType
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "data": self.data}


@dataclass(slots=True)
class AIResponse:
    """What the assistant says back, plus advisory actions and suggestions."""

    text: str
    suggestions: list[str] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)
    needs_user_input: bool = False

    def find_action(self, action_type: ActionType) -> Action | None:
        for action in self.actions:
            if action.type is action_type:
                return action
        return None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"text": self.text}
        if self.suggestions:
            out["suggestions"] = list(self.suggestions)
        if self.actions:
            out["actions"] = [a.to_dict() for a in self.actions]
        if self.needs_user_input:
            out["needsUserInput"] = True
        return out


@dataclass(slots=True)
class TurnResult:
    """Result of one assistant turn."""

    response: AIResponse
    tool_executed: bool = False
    tool_result: ExecutionResult | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "response": self.response.to_dict(),
            "toolExecuted": self.tool_executed,
        }
        if self.tool_result is not None:
            out["toolResult"] = self.tool_result.to_dict()
        return out
