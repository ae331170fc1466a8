"""Protocols for the gateway's external collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from whistle_gateway.types.tools import ToolDefinition


@dataclass(frozen=True, slots=True)
class CompletionParams:
    """Sampling parameters for one completion call."""

    temperature: float = 0.7
    max_tokens: int = 300


@runtime_checkable
class CompletionProvider(Protocol):
    """Protocol every language-model adapter implements."""

    @property
    def model_id(self) -> str:
        """The model identifier being used."""
        ...

    async def complete(self, system: str, message: str, params: CompletionParams) -> str:
        """Send one system prompt and one user message; return the reply text."""
        ...


@runtime_checkable
class ToolSource(Protocol):
    """Anything the schema store can pull an authoritative tool list from."""

    @property
    def connected(self) -> bool:
        ...

    async def list_tools(self) -> list[ToolDefinition]:
        ...


@runtime_checkable
class ToolSession(Protocol):
    """The subset of ``mcp.ClientSession`` the connection manager relies on."""

    async def list_tools(self) -> Any:
        ...

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        ...

    async def list_resources(self) -> Any:
        ...
