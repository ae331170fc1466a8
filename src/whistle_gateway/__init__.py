"""whistle-gateway: AI assistant gateway for the DoWhistle MCP endpoint.

Usage:
    from whistle_gateway import Gateway, load_config, create_provider

    config = load_config()
    async with Gateway(config, create_provider(config.assistant)) as gateway:
        result = await gateway.process_turn("plumbers near me", {"userLocation": "10.99,76.96"})
        print(result.response.text)
"""

from whistle_gateway.core.config import load_config
from whistle_gateway.core.gateway import Gateway
from whistle_gateway.errors import ConfigError, GatewayError, NotConnectedError, ToolListingError
from whistle_gateway.providers import create_provider
from whistle_gateway.types.auth import AuthContext
from whistle_gateway.types.config import (
    AssistantConfig,
    GatewayConfig,
    MCPConnectionConfig,
    SyncConfig,
)
from whistle_gateway.types.messages import Action, ActionType, AIResponse, TurnResult
from whistle_gateway.types.tools import ExecutionResult, ToolCallDirective, ToolDefinition

__version__ = "1.0.0"

__all__ = [
    # Core API
    "Gateway",
    "create_provider",
    "load_config",
    # Configuration
    "AssistantConfig",
    "GatewayConfig",
    "MCPConnectionConfig",
    "SyncConfig",
    # Request / response types
    "AIResponse",
    "Action",
    "ActionType",
    "AuthContext",
    "ExecutionResult",
    "ToolCallDirective",
    "ToolDefinition",
    "TurnResult",
    # Errors
    "ConfigError",
    "GatewayError",
    "NotConnectedError",
    "ToolListingError",
]
