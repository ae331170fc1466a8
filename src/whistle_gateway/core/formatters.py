"""Turn structured tool results into user-facing text.

Formatting is a table lookup: tool name -> formatter. Tools without an entry
use :func:`format_default`. Adding a rule for a new tool is a call to
:meth:`FormatterRegistry.register`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

SUCCESS_FALLBACK = "Tool executed successfully."
NO_PROVIDERS = (
    "No nearby providers found for your search. "
    "Try increasing radius or changing the keyword."
)
NO_WHISTLES = "No whistles found."


@dataclass(frozen=True, slots=True)
class FormatRequest:
    """What the formatter knows about the turn that produced the payload."""

    tool: str
    message: str = ""
    args: dict[str, Any] = field(default_factory=dict)


Formatter = Callable[[Mapping[str, Any], FormatRequest], str]


# ----------------------------------------------------------------------
# Payload extraction
# ----------------------------------------------------------------------

def _dig(data: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(data, Mapping):
            return None
        data = data.get(key)
    return data


def _from_text_content(data: Any) -> Any:
    content = _dig(data, "content")
    if not isinstance(content, list):
        return None
    for item in content:
        text = _dig(item, "text")
        if not isinstance(text, str):
            continue
        try:
            parsed = json.loads(text)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


_CANDIDATES: tuple[Callable[[Any], Any], ...] = (
    lambda d: _dig(d, "structuredContent"),
    lambda d: _dig(d, "result", "structuredContent"),
    _from_text_content,
)


def extract_payload(data: Any) -> dict[str, Any] | None:
    """Find the structured payload inside a raw tool result, if any."""
    for candidate in _CANDIDATES:
        payload = candidate(data)
        if isinstance(payload, dict) and payload:
            # FastMCP wraps non-object return values as {"result": ...}.
            inner = payload.get("result")
            if len(payload) == 1 and isinstance(inner, dict):
                return inner
            return payload
    return None


# ----------------------------------------------------------------------
# Built-in formatters
# ----------------------------------------------------------------------

def _first(mapping: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = mapping.get(key)
        if value not in (None, ""):
            return value
    return default


def _rating(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{value:.1f}"
    return "N/A" if value is None else str(value)


def _items(payload: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    items = payload.get(key)
    if items is None:
        items = _dig(payload, "data", key)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, Mapping)]


def format_default(payload: Mapping[str, Any], request: FormatRequest) -> str:
    message = payload.get("message")
    if isinstance(message, str) and message:
        return message
    return json.dumps(payload, indent=2, default=str)


def format_message(payload: Mapping[str, Any], request: FormatRequest) -> str:
    """Echo the tool's own message verbatim."""
    message = payload.get("message")
    if isinstance(message, str) and message:
        return message
    return format_default(payload, request)


def format_businesses(payload: Mapping[str, Any], request: FormatRequest) -> str:
    providers = _items(payload, "providers")
    if not providers:
        return NO_PROVIDERS
    total = payload.get("total_count", len(providers))
    lines = []
    for idx, p in enumerate(providers, start=1):
        name = _first(p, "name", "businessName", default="Provider")
        phone = _first(p, "phone", default="N/A")
        lines.append(f"{idx}. {name}\n   Phone: {phone}\n   Rating: {_rating(p.get('rating'))}")
    return f"Found {total} result(s) near your location:\n\n" + "\n".join(lines)


def _whistle_line(idx: int, whistle: Mapping[str, Any]) -> str:
    title = _first(whistle, "description", "title", "name", default="Whistle")
    line = f"{idx}. {title}"
    tags = whistle.get("tags")
    if isinstance(tags, list) and tags:
        line += f" [{', '.join(str(t) for t in tags)}]"
    kind = whistle.get("type")
    if kind:
        line += f" ({kind})"
    active = whistle.get("active")
    if isinstance(active, bool):
        line += " - active" if active else " - inactive"
    return line


def format_whistles(payload: Mapping[str, Any], request: FormatRequest) -> str:
    whistles = _items(payload, "whistles")
    if not whistles:
        return NO_WHISTLES
    header = f"You have {len(whistles)} whistle(s):"
    return "\n".join([header] + [_whistle_line(i, w) for i, w in enumerate(whistles, 1)])


# Keyword in the user's message -> (label, profile field names to try).
PROFILE_FIELDS: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("phone", "Phone", ("phone", "phone_number")),
    ("email", "Email", ("email",)),
    ("rating", "Rating", ("rating", "average_rating")),
    ("visib", "Visible", ("visible", "visibility")),
    ("name", "Name", ("name", "full_name")),
)


def format_profile(payload: Mapping[str, Any], request: FormatRequest) -> str:
    profile = payload.get("user")
    if not isinstance(profile, Mapping):
        profile = payload.get("profile")
    if not isinstance(profile, Mapping):
        profile = payload

    message = request.message.lower()
    for keyword, label, keys in PROFILE_FIELDS:
        if keyword in message:
            value = _first(profile, *keys)
            if value is not None:
                return f"Your {label.lower()}: {value}"

    lines = ["Your profile:"]
    for _, label, keys in reversed(PROFILE_FIELDS):
        value = _first(profile, *keys)
        if value is not None:
            lines.append(f"- {label}: {value}")
    if len(lines) == 1:
        return format_default(payload, request)
    return "\n".join(lines)


class FormatterRegistry:
    """Tool name -> formatter, with a default for everything else."""

    def __init__(self, default: Formatter = format_default) -> None:
        self._formatters: dict[str, Formatter] = {}
        self._default = default

    def register(self, tool: str, formatter: Formatter) -> None:
        self._formatters[tool] = formatter

    def get(self, tool: str) -> Formatter:
        return self._formatters.get(tool, self._default)

    def __contains__(self, tool: object) -> bool:
        return tool in self._formatters

    def format(self, payload: Mapping[str, Any], request: FormatRequest) -> str:
        formatter = self.get(request.tool)
        try:
            return formatter(payload, request)
        except Exception as exc:
            logger.warning("Formatter for %s failed: %s", request.tool, exc)
            return self._default(payload, request)

    def render_result(self, data: Any, request: FormatRequest) -> str:
        """Full fallback chain for a successful tool result."""
        payload = extract_payload(data)
        if payload is not None:
            return self.format(payload, request)
        message = _dig(data, "message")
        if isinstance(message, str) and message:
            return message
        logger.debug("No structured payload in %s result", request.tool)
        return SUCCESS_FALLBACK


def default_registry() -> FormatterRegistry:
    registry = FormatterRegistry()
    registry.register("search_businesses", format_businesses)
    registry.register("list_whistles", format_whistles)
    registry.register("get_user_profile", format_profile)
    for tool in ("sign_in", "verify_otp", "resend_otp", "create_whistle", "toggle_visibility"):
        registry.register(tool, format_message)
    return registry
