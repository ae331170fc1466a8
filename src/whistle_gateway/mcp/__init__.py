"""MCP connection, schema cache, sanitization, execution and sync."""

from whistle_gateway.mcp.connection import ConnectionManager, ConnectionState
from whistle_gateway.mcp.executor import ToolExecutor
from whistle_gateway.mcp.sanitizer import sanitize
from whistle_gateway.mcp.schema import ToolSchemaStore
from whistle_gateway.mcp.sync import ToolRegistrySynchronizer

__all__ = [
    "ConnectionManager",
    "ConnectionState",
    "ToolExecutor",
    "ToolRegistrySynchronizer",
    "ToolSchemaStore",
    "sanitize",
]
