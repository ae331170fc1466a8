"""OpenTelemetry spans around tool execution and model calls.

Without a configured SDK the OpenTelemetry API hands out non-recording
spans, so callers can always use :func:`span` unconditionally.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator

from opentelemetry import trace

TRACER_NAME = "whistle_gateway"


def get_tracer(name: str = TRACER_NAME) -> trace.Tracer:
    return trace.get_tracer(name)


@contextmanager
def span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """Context manager that opens a span as the current span."""
    tracer = get_tracer()
    with tracer.start_as_current_span(name, attributes=attributes) as s:
        yield s
