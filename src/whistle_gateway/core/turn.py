"""The assistant turn: model reply -> optional tool call -> final text."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any

from whistle_gateway.core.formatters import FormatRequest, FormatterRegistry, default_registry
from whistle_gateway.core.parser import (
    PlainText,
    keyword_actions,
    keyword_suggestions,
    parse_reply,
)
from whistle_gateway.core.prompt import DEFAULT_GREETING, FALLBACK_REPLY, build_system_prompt
from whistle_gateway.mcp.executor import ToolExecutor
from whistle_gateway.observability.tracing import span
from whistle_gateway.types.auth import AuthContext
from whistle_gateway.types.config import AssistantConfig
from whistle_gateway.types.messages import (
    Action,
    ActionType,
    AIResponse,
    ChatContext,
    TurnResult,
)
from whistle_gateway.types.providers import CompletionParams, CompletionProvider
from whistle_gateway.types.tools import ToolCallDirective, ToolDefinition

logger = logging.getLogger(__name__)

LOCATION_KEYS = ("userLocation", "user_location")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_location(value: Any) -> tuple[float, float] | None:
    """Parse a ``"lat,lng"`` string into floats.

    Returns None unless both values are finite and within the
    latitude (+-90) and longitude (+-180) ranges.
    """
    if not isinstance(value, str):
        return None
    parts = value.split(",")
    if len(parts) != 2:
        return None
    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return None
    if abs(lat) > 90 or abs(lng) > 180:
        return None
    return lat, lng


def merge_context_args(args: Mapping[str, Any], context: Mapping[str, Any]) -> dict[str, Any]:
    """Fill in arguments the model cannot know, such as the caller's coordinates."""
    merged = dict(args)
    if _is_number(merged.get("latitude")):
        return merged
    for key in LOCATION_KEYS:
        coords = parse_location(context.get(key))
        if coords is not None:
            merged["latitude"], merged["longitude"] = coords
            break
    return merged


class AssistantTurnProcessor:
    """Runs one conversational turn against the language model and the tools."""

    def __init__(
        self,
        provider: CompletionProvider,
        executor: ToolExecutor,
        config: AssistantConfig | None = None,
        formatters: FormatterRegistry | None = None,
    ) -> None:
        self._provider = provider
        self._executor = executor
        self._config = config or AssistantConfig()
        self._formatters = formatters or default_registry()
        self._tools: list[ToolDefinition] = []

    @property
    def available_tools(self) -> list[ToolDefinition]:
        return list(self._tools)

    @property
    def formatters(self) -> FormatterRegistry:
        return self._formatters

    def set_available_tools(self, tools: Iterable[ToolDefinition]) -> None:
        self._tools = list(tools)
        logger.info("Updated available tools: %s", ", ".join(t.name for t in self._tools))

    async def respond(self, message: str, context: ChatContext | None = None) -> AIResponse:
        """Ask the model and classify its reply. Never raises."""
        context = context or {}
        logger.info(
            "Processing message (length=%d, has_context=%s)", len(message), bool(context),
        )
        system = build_system_prompt(self._tools, context)
        params = CompletionParams(
            temperature=self._config.temperature, max_tokens=self._config.max_tokens,
        )
        with span("assistant.complete", {"model": self._provider.model_id}):
            try:
                reply = await self._provider.complete(system, message, params)
            except Exception as exc:
                logger.error("Error processing message with model: %s", exc or type(exc).__name__)
                return AIResponse(text=FALLBACK_REPLY)

        reply = reply or DEFAULT_GREETING
        logger.info("Model response received (length=%d)", len(reply))
        return self.interpret(reply, message)

    def interpret(self, reply: str, message: str) -> AIResponse:
        parsed = parse_reply(reply)
        if isinstance(parsed, PlainText):
            return AIResponse(
                text=parsed.text,
                suggestions=keyword_suggestions(message),
                actions=keyword_actions(parsed.text, message),
            )

        action = Action(ActionType.TOOL_CALL, parsed.directive.to_dict())
        return AIResponse(text="", actions=[action])

    async def process_turn(
        self,
        message: str,
        context: ChatContext | None = None,
        auth: AuthContext | None = None,
    ) -> TurnResult:
        context = context or {}
        response = await self.respond(message, context)

        action = response.find_action(ActionType.TOOL_CALL)
        if action is None:
            return TurnResult(response=response)

        directive = ToolCallDirective(tool=action.data["tool"], args=action.data["args"])
        args = merge_context_args(directive.args, context)
        logger.info("Executing MCP tool from model response: %s", directive.tool)
        result = await self._executor.execute(directive.tool, args, auth=auth)

        if result.success:
            request = FormatRequest(tool=directive.tool, message=message, args=args)
            response.text = self._formatters.render_result(result.data, request)
        else:
            response.text = f"Tool call failed: {result.error}"

        return TurnResult(response=response, tool_executed=True, tool_result=result)
