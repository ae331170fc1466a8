"""Exceptions raised inside the gateway.

Only configuration and listing paths raise; tool execution converts every
failure into an :class:`~whistle_gateway.types.tools.ExecutionResult`.
"""

from __future__ import annotations


class GatewayError(Exception):
    """Base class for gateway errors."""


class ConfigError(GatewayError):
    """Required configuration is missing or malformed."""


class NotConnectedError(GatewayError):
    """The MCP endpoint is not reachable."""

    def __init__(self, message: str = "Not connected to MCP server") -> None:
        super().__init__(message)


class ToolListingError(GatewayError):
    """The endpoint was reachable but listing its tools failed."""
