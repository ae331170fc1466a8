"""Detect a tool-call directive in free-text model output.

A reply is either :class:`PlainText` or a :class:`ToolCall`. Extraction
strategies run in a fixed order and the first one that yields a valid
directive wins:

1. the first fenced code block (```json ... ```) anywhere in the reply;
2. the whole reply, trimmed, if it is a bare JSON object.

Prose before a bare JSON object therefore means "no tool call".
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from whistle_gateway.types.messages import Action, ActionType
from whistle_gateway.types.tools import ToolCallDirective

logger = logging.getLogger(__name__)

_FENCED = re.compile(r"```[a-zA-Z]*\s*\n(.*?)```", re.DOTALL)


@dataclass(frozen=True, slots=True)
class PlainText:
    text: str


@dataclass(frozen=True, slots=True)
class ToolCall:
    directive: ToolCallDirective


ParsedReply = PlainText | ToolCall


def _fenced_block(text: str) -> str | None:
    match = _FENCED.search(text)
    if match is None:
        return None
    return match.group(1).strip()


def _whole_message(text: str) -> str | None:
    stripped = text.strip()
    if stripped.startswith("{") and stripped.endswith("}"):
        return stripped
    return None


STRATEGIES: tuple[Callable[[str], str | None], ...] = (_fenced_block, _whole_message)


def as_directive(candidate: str) -> ToolCallDirective | None:
    """Decode *candidate*; accept only ``{"tool": str, "args": object}``."""
    try:
        parsed: Any = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        logger.debug("Discarding unparseable tool-call candidate")
        return None
    if not isinstance(parsed, dict):
        return None
    tool = parsed.get("tool")
    args = parsed.get("args")
    if not isinstance(tool, str) or not tool or not isinstance(args, dict):
        return None
    return ToolCallDirective(tool=tool, args=args)


def parse_reply(text: str) -> ParsedReply:
    for strategy in STRATEGIES:
        candidate = strategy(text)
        if candidate is None:
            continue
        directive = as_directive(candidate)
        if directive is not None:
            logger.info("Valid tool call found: %s", directive.tool)
            return ToolCall(directive)
    return PlainText(text)


# ----------------------------------------------------------------------
# Advisory signals for plain-text replies
# ----------------------------------------------------------------------

PRICE_SUGGESTIONS = ["Get quotes", "Compare providers"]
BOOKING_SUGGESTIONS = ["Choose service type", "Set pickup location"]
DEFAULT_SUGGESTIONS = ["Book a ride", "Find services", "See offers"]


def keyword_actions(reply: str, message: str) -> list[Action]:
    reply_lower = reply.lower()
    message_lower = message.lower()
    actions: list[Action] = []
    if "book" in reply_lower or "book" in message_lower:
        actions.append(Action(ActionType.BOOKING_INTENT, {"message": message}))
    if "location" in reply_lower or "location" in message_lower:
        actions.append(Action(ActionType.LOCATION_REQUEST))
    return actions


def keyword_suggestions(message: str) -> list[str]:
    message_lower = message.lower()
    if "price" in message_lower:
        return list(PRICE_SUGGESTIONS)
    if "book" in message_lower:
        return list(BOOKING_SUGGESTIONS)
    return list(DEFAULT_SUGGESTIONS)
