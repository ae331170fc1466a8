"""Schema-driven filtering of tool arguments."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from whistle_gateway.mcp.schema import ToolSchemaStore
from whistle_gateway.types.tools import SanitizedArgs

DEFAULT_AUTH_KEY = "access_token"


def sanitize(
    tool_name: str,
    raw_args: Mapping[str, Any],
    store: ToolSchemaStore,
    auth_token: str | None = None,
    auth_key: str = DEFAULT_AUTH_KEY,
) -> SanitizedArgs:
    """Keep only the arguments *tool_name* declares.

    Tools missing from *store* pass through untouched. When the schema
    declares *auth_key* and the gateway holds a token, the gateway's token is
    forwarded under that key; it is never added for tools that do not declare
    it.
    """
    definition = store.lookup(tool_name)
    if definition is None:
        return SanitizedArgs(args=dict(raw_args))

    allowed = definition.properties
    kept = {k: v for k, v in raw_args.items() if k in allowed}
    dropped = tuple(sorted(k for k in raw_args if k not in allowed))

    if auth_token and auth_key in allowed:
        kept[auth_key] = auth_token

    return SanitizedArgs(args=kept, dropped=dropped)
