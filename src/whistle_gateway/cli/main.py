"""CLI entry point for the gateway."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import click

from whistle_gateway.cli.output import RichPrinter
from whistle_gateway.core.config import load_config
from whistle_gateway.core.gateway import Gateway
from whistle_gateway.errors import ConfigError, GatewayError
from whistle_gateway.mcp.connection import ConnectionManager
from whistle_gateway.mcp.executor import ToolExecutor
from whistle_gateway.mcp.schema import ToolSchemaStore
from whistle_gateway.observability.logs import configure_logging
from whistle_gateway.providers import create_provider
from whistle_gateway.types.auth import AuthContext
from whistle_gateway.types.config import GatewayConfig


def _load(ctx: click.Context) -> GatewayConfig:
    """Load configuration or exit; the only process-fatal path."""
    try:
        config = load_config(cwd=ctx.obj.get("cwd"))
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    configure_logging("DEBUG" if ctx.obj.get("verbose") else config.log_level)
    return config


def _json_option(raw: str | None, name: str) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"invalid JSON: {exc}", param_hint=name) from exc
    if not isinstance(value, dict):
        raise click.BadParameter("must be a JSON object", param_hint=name)
    return value


def _executor(config: GatewayConfig) -> ToolExecutor:
    connection = ConnectionManager(config.mcp)
    store = ToolSchemaStore(sync_interval=config.sync.schema_ttl)
    return ToolExecutor(connection, store, auth_key=config.auth_key)


@click.group()
@click.option("--cwd", default=None, help="Directory to search for .whistle/config.toml")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx: click.Context, cwd: str | None, verbose: bool) -> None:
    """whistle-gateway -- talk to the DoWhistle assistant and its MCP tools.

    \b
    Usage:
      whistle-gateway ask "find burger places near me" --context '{"userLocation": "10.99,76.96"}'
      whistle-gateway tools list
      whistle-gateway tools call list_whistles --token $TOKEN
      whistle-gateway status
    """
    ctx.ensure_object(dict)
    ctx.obj["cwd"] = cwd
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("message", nargs=-1, required=True)
@click.option("--context", "context_json", default=None, help="Chat context as a JSON object")
@click.option("--token", envvar="WHISTLE_TOKEN", default=None, help="User access token")
@click.option("--user-id", default=None, help="User id forwarded as X-User-Id")
@click.pass_context
def ask(
    ctx: click.Context,
    message: tuple[str, ...],
    context_json: str | None,
    token: str | None,
    user_id: str | None,
) -> None:
    """Send one message to the assistant."""
    config = _load(ctx)
    context = _json_option(context_json, "--context")
    auth = AuthContext(token=token, user_id=user_id)
    try:
        provider = create_provider(config.assistant)
    except (ValueError, ImportError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    async def _run() -> None:
        gateway = Gateway(config, provider)
        gateway.connection.set_auth_context(auth)
        try:
            if await gateway.connection.connect():
                await gateway.synchronizer.sync_once()
            result = await gateway.process_turn(" ".join(message), context, auth=auth)
        finally:
            await gateway.shutdown()
        RichPrinter().print_turn(result, verbose=ctx.obj.get("verbose", False))

    asyncio.run(_run())


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Try to connect and report the connection status."""
    config = _load(ctx)
    executor = _executor(config)

    async def _run() -> dict[str, Any]:
        try:
            await executor.connection.connect()
            return executor.connection.status()
        finally:
            await executor.connection.disconnect()

    RichPrinter().print_status(asyncio.run(_run()))


@cli.group()
def tools() -> None:
    """Inspect and call MCP tools directly."""


@tools.command("list")
@click.pass_context
def tools_list(ctx: click.Context) -> None:
    """List the tools the MCP endpoint exposes."""
    config = _load(ctx)
    executor = _executor(config)

    async def _run():
        try:
            return await executor.list_tools()
        finally:
            await executor.connection.disconnect()

    try:
        listed = asyncio.run(_run())
    except GatewayError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    RichPrinter().print_tools(listed)


@tools.command("call")
@click.argument("name")
@click.option("--args", "args_json", default=None, help="Tool arguments as a JSON object")
@click.option("--token", envvar="WHISTLE_TOKEN", default=None, help="User access token")
@click.option("--user-id", default=None, help="User id forwarded as X-User-Id")
@click.pass_context
def tools_call(
    ctx: click.Context,
    name: str,
    args_json: str | None,
    token: str | None,
    user_id: str | None,
) -> None:
    """Execute one tool by name."""
    config = _load(ctx)
    args = _json_option(args_json, "--args")
    auth = AuthContext(token=token, user_id=user_id)
    executor = _executor(config)
    executor.connection.set_auth_context(auth)

    async def _run():
        try:
            return await executor.execute(name, args, auth=auth)
        finally:
            await executor.connection.disconnect()

    result = asyncio.run(_run())
    RichPrinter().print_result(result)
    if not result.success:
        sys.exit(1)


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
