"""Configuration types for the gateway."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class MCPConnectionConfig:
    """How to reach the MCP endpoint and how hard to try."""

    server_url: str
    request_timeout: float = 10.0  # seconds, per MCP request
    max_reconnect_attempts: int = 5
    reconnect_base_delay: float = 2.0  # seconds; delay = base * attempt
    client_name: str = "whistle-gateway"
    client_version: str = "1.0.0"


@dataclass(frozen=True, slots=True)
class AssistantConfig:
    """Language-model settings for the assistant turn processor."""

    provider: str = "openai"  # "openai" or "anthropic"
    model: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    temperature: float = 0.7
    max_tokens: int = 300
    completion_timeout: float = 30.0


@dataclass(frozen=True, slots=True)
class SyncConfig:
    """Refresh cadence for the schema cache and the registry synchronizer."""

    schema_ttl: float = 300.0
    registry_interval: float = 30.0


@dataclass(slots=True)
class GatewayConfig:
    """Top-level configuration assembled by :func:`load_config`."""

    mcp: MCPConnectionConfig
    assistant: AssistantConfig = field(default_factory=AssistantConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    auth_key: str = "access_token"
    log_level: str = "INFO"
