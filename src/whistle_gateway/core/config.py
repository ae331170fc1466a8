"""Configuration loading (.env, environment variables, config.toml)."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from whistle_gateway.errors import ConfigError
from whistle_gateway.types.config import (
    AssistantConfig,
    GatewayConfig,
    MCPConnectionConfig,
    SyncConfig,
)

ENV_MAP = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


def load_toml_config(cwd: str | None = None) -> dict[str, Any]:
    """Load ``.whistle/config.toml`` from *cwd*, the current directory, or home."""
    search = []
    if cwd:
        search.append(Path(cwd) / ".whistle" / "config.toml")
    search.append(Path.cwd() / ".whistle" / "config.toml")
    search.append(Path.home() / ".whistle" / "config.toml")

    for path in search:
        if not path.exists():
            continue
        try:
            with open(path, "rb") as f:
                return tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"Invalid config file {path}: {exc}") from exc
    return {}


def _number(name: str, raw: Any, kind: type) -> Any:
    try:
        return kind(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a {kind.__name__}, got {raw!r}") from exc


def _env(name: str) -> str | None:
    value = os.environ.get(name)
    return value if value else None


def load_config(cwd: str | None = None, use_dotenv: bool = True) -> GatewayConfig:
    """Assemble :class:`GatewayConfig`.

    Precedence: environment (after loading ``.env``) > config.toml > defaults.

    Raises
    ------
    ConfigError
        If no MCP server URL is configured or a value has the wrong type.
    """
    if use_dotenv:
        # Won't override variables already set in the environment.
        load_dotenv()

    data = load_toml_config(cwd)
    mcp_section: dict[str, Any] = data.get("mcp", {})
    ai_section: dict[str, Any] = data.get("assistant", {})
    sync_section: dict[str, Any] = data.get("sync", {})

    server_url = _env("MCP_SERVER_URL") or mcp_section.get("server_url")
    if not server_url:
        raise ConfigError("MCP_SERVER_URL environment variable is required")

    timeout = _env("MCP_REQUEST_TIMEOUT") or mcp_section.get("request_timeout", 10.0)
    mcp = MCPConnectionConfig(
        server_url=server_url,
        request_timeout=_number("MCP_REQUEST_TIMEOUT", timeout, float),
        max_reconnect_attempts=_number(
            "max_reconnect_attempts", mcp_section.get("max_reconnect_attempts", 5), int,
        ),
        reconnect_base_delay=_number(
            "reconnect_base_delay", mcp_section.get("reconnect_base_delay", 2.0), float,
        ),
    )

    provider = (_env("GATEWAY_PROVIDER") or ai_section.get("provider", "openai")).lower()
    model = ai_section.get("model")
    if provider == "openai":
        model = _env("OPENAI_MODEL") or model
    temperature = _env("OPENAI_TEMPERATURE") or ai_section.get("temperature", 0.7)
    assistant = AssistantConfig(
        provider=provider,
        model=model,
        api_key=resolve_api_key(provider, ai_section.get("api_key")),
        base_url=_env("OPENAI_BASE_URL") or ai_section.get("base_url"),
        temperature=_number("OPENAI_TEMPERATURE", temperature, float),
        max_tokens=_number("max_tokens", ai_section.get("max_tokens", 300), int),
        completion_timeout=_number(
            "completion_timeout", ai_section.get("completion_timeout", 30.0), float,
        ),
    )

    sync = SyncConfig(
        schema_ttl=_number("schema_ttl", sync_section.get("schema_ttl", 300.0), float),
        registry_interval=_number(
            "registry_interval", sync_section.get("registry_interval", 30.0), float,
        ),
    )

    return GatewayConfig(
        mcp=mcp,
        assistant=assistant,
        sync=sync,
        auth_key=mcp_section.get("auth_key", "access_token"),
        log_level=_env("LOG_LEVEL") or data.get("log_level", "INFO"),
    )


def resolve_api_key(provider: str, explicit_key: str | None = None) -> str | None:
    """Resolve a provider API key from the environment, then the config file."""
    env_var = ENV_MAP.get(provider)
    if env_var:
        value = _env(env_var)
        if value:
            return value
    return explicit_key or None
