"""Tool definition and execution result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ToolParam:
    """A single property declared in a tool's input schema."""

    name: str
    type: str  # "string", "number", "boolean", "array", "object"
    description: str = ""
    required: bool = False


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """A remote tool as advertised by the MCP endpoint."""

    name: str
    description: str = ""
    input_schema: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mcp(cls, tool: Any) -> ToolDefinition:
        """Build from an ``mcp.types.Tool`` (or anything shaped like one)."""
        schema = getattr(tool, "inputSchema", None) or {}
        return cls(
            name=tool.name,
            description=getattr(tool, "description", None) or "",
            input_schema=dict(schema),
        )

    @property
    def properties(self) -> frozenset[str]:
        props = self.input_schema.get("properties") or {}
        return frozenset(props)

    @property
    def parameters(self) -> tuple[ToolParam, ...]:
        props = self.input_schema.get("properties") or {}
        required = set(self.input_schema.get("required") or ())
        params = []
        for pname, pschema in props.items():
            pschema = pschema if isinstance(pschema, dict) else {}
            params.append(ToolParam(
                name=pname,
                type=str(pschema.get("type", "string")),
                description=pschema.get("description", ""),
                required=pname in required,
            ))
        return tuple(params)

    def declares(self, key: str) -> bool:
        return key in self.properties

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass(frozen=True, slots=True)
class ToolCallDirective:
    """The model's request to invoke one tool, parsed from its reply."""

    tool: str
    args: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"tool": self.tool, "args": dict(self.args)}


@dataclass(frozen=True, slots=True)
class SanitizedArgs:
    """Arguments that survived schema filtering, plus the names that did not."""

    args: dict[str, Any]
    dropped: tuple[str, ...] = ()


@dataclass(slots=True)
class ExecutionResult:
    """Outcome of one tool invocation.

    A failed result always carries a non-empty ``error``.
    """

    success: bool
    data: Any = None
    error: str | None = None

    def __post_init__(self) -> None:
        if not self.success and not self.error:
            self.error = "Unknown error"

    @classmethod
    def ok(cls, data: Any = None) -> ExecutionResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> ExecutionResult:
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            out["data"] = self.data
        if self.error is not None:
            out["error"] = self.error
        return out
