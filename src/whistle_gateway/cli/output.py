"""Rich-powered rendering of gateway results."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from whistle_gateway.types.messages import TurnResult
from whistle_gateway.types.tools import ExecutionResult, ToolDefinition

STYLE_ACCENT = "bold #a78bfa"
STYLE_DIM = "dim #7c7c8a"
STYLE_ERROR = "bold #f87171"
STYLE_OK = "#34d399"


class RichPrinter:
    """Prints turns, tool results and catalogues to the terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def print_turn(self, result: TurnResult, verbose: bool = False) -> None:
        response = result.response
        self._console.print(Text(response.text))
        if response.suggestions:
            self._console.print(
                Text("Suggestions: ", style=STYLE_DIM)
                + Text(" | ".join(response.suggestions), style=STYLE_ACCENT)
            )
        if result.tool_executed and result.tool_result is not None:
            status = "ok" if result.tool_result.success else "failed"
            style = STYLE_OK if result.tool_result.success else STYLE_ERROR
            self._console.print(Text(f"[tool {status}]", style=style))
        if verbose:
            self.print_json(result.to_dict())

    def print_result(self, result: ExecutionResult) -> None:
        if not result.success:
            self._console.print(Panel(Text(result.error or ""), title="Tool failed",
                                      border_style=STYLE_ERROR))
            return
        self.print_json(result.to_dict())

    def print_tools(self, tools: list[ToolDefinition]) -> None:
        table = Table(title=f"{len(tools)} MCP tools", title_style=STYLE_ACCENT)
        table.add_column("Tool", style=STYLE_ACCENT, no_wrap=True)
        table.add_column("Parameters")
        table.add_column("Description", style=STYLE_DIM)
        for tool in sorted(tools, key=lambda t: t.name):
            params = ", ".join(
                f"{p.name}*" if p.required else p.name for p in tool.parameters
            )
            table.add_row(tool.name, params, tool.description)
        self._console.print(table)

    def print_status(self, status: dict[str, Any]) -> None:
        connected = status.get("connected")
        style = STYLE_OK if connected else STYLE_ERROR
        label = "connected" if connected else "disconnected"
        self._console.print(
            Text("MCP: ", style=STYLE_DIM) + Text(label, style=style)
            + Text(f"  (reconnect attempts: {status.get('attempts', 0)})", style=STYLE_DIM)
        )

    def print_json(self, data: Any) -> None:
        self._console.print_json(json.dumps(data, default=str))
