"""Logging setup and OpenTelemetry tracing for the gateway."""

from whistle_gateway.observability.logs import configure_logging
from whistle_gateway.observability.tracing import get_tracer, span

__all__ = ["configure_logging", "get_tracer", "span"]
