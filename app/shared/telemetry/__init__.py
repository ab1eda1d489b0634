"""Shared telemetry: logging setup, OpenTelemetry tracing, and span helpers."""

from app.shared.telemetry.logging import get_logger, setup_logging
from app.shared.telemetry.telemetry import Telemetry, build_tracer_provider
from app.shared.telemetry.tracing import add_span_attributes, traced

__all__ = [
    "Telemetry",
    "add_span_attributes",
    "build_tracer_provider",
    "get_logger",
    "setup_logging",
    "traced",
]
