"""Type definitions for the gateway."""

from whistle_gateway.types.auth import AuthContext
from whistle_gateway.types.config import (
    AssistantConfig,
    GatewayConfig,
    MCPConnectionConfig,
    SyncConfig,
)
from whistle_gateway.types.messages import (
    Action,
    ActionType,
    AIResponse,
    ChatContext,
    TurnResult,
)
from whistle_gateway.types.providers import (
    CompletionParams,
    CompletionProvider,
    ToolSession,
    ToolSource,
)
from whistle_gateway.types.tools import (
    ExecutionResult,
    SanitizedArgs,
    ToolCallDirective,
    ToolDefinition,
    ToolParam,
)

__all__ = [
    "AIResponse",
    "Action",
    "ActionType",
    "AssistantConfig",
    "AuthContext",
    "ChatContext",
    "CompletionParams",
    "CompletionProvider",
    "ExecutionResult",
    "GatewayConfig",
    "MCPConnectionConfig",
    "SanitizedArgs",
    "SyncConfig",
    "ToolCallDirective",
    "ToolDefinition",
    "ToolParam",
    "ToolSession",
    "ToolSource",
    "TurnResult",
]
