"""Assistant turn processing, configuration and the gateway facade."""

from whistle_gateway.core.config import load_config
from whistle_gateway.core.formatters import FormatRequest, FormatterRegistry, default_registry
from whistle_gateway.core.gateway import Gateway
from whistle_gateway.core.parser import PlainText, ToolCall, parse_reply
from whistle_gateway.core.turn import AssistantTurnProcessor

__all__ = [
    "AssistantTurnProcessor",
    "FormatRequest",
    "FormatterRegistry",
    "Gateway",
    "PlainText",
    "ToolCall",
    "default_registry",
    "load_config",
    "parse_reply",
]
