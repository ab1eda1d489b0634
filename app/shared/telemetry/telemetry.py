"""OpenTelemetry tracing for the sync service.

The tracer provider is built from Settings (console, OTLP gRPC or no
exporter) and bound to FastAPI, the SQLAlchemy engine, Redis and logging.
A failing instrumentation is logged and skipped.
"""

import logging
from collections.abc import Callable

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import Settings

logger = logging.getLogger(__name__)

# Liveness endpoints
UNTRACED_URLS = "/health,/api/v1/health"


def build_span_exporter(exporter_type: str, otlp_endpoint: str | None) -> SpanExporter | None:
    """Return the exporter for TELEMETRY_EXPORTER, or None for "none".

    "otlp" without an endpoint and unknown names fall back to the console.
    """
    if exporter_type == "none":
        return None
    if exporter_type == "otlp" and otlp_endpoint:
        return OTLPSpanExporter(
            endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
        )
    if exporter_type != "console":
        logger.warning("Unusable exporter '%s', tracing to console", exporter_type)
    return ConsoleSpanExporter()


def build_tracer_provider(settings: Settings) -> TracerProvider:
    """Tracer provider tagged with service name, version and environment."""
    provider = TracerProvider(
        resource=Resource(
            attributes={
                SERVICE_NAME: settings.app_name,
                SERVICE_VERSION: settings.app_version,
                "deployment.environment": settings.telemetry_environment,
            }
        ),
        sampler=TraceIdRatioBased(settings.telemetry_sample_rate),
    )
    exporter = build_span_exporter(
        settings.telemetry_exporter, settings.telemetry_otlp_endpoint
    )
    if exporter is not None:
        provider.add_span_processor(BatchSpanProcessor(exporter))
    return provider


class Telemetry:
    """Installed tracer provider and the instrumentations bound to it."""

    def __init__(self, provider: TracerProvider) -> None:
        self.provider = provider
        self.instrumented: list[str] = []

    @classmethod
    def start(cls, settings: Settings) -> "Telemetry | None":
        """Build and install the global tracer provider; None if that fails."""
        try:
            provider = build_tracer_provider(settings)
        except Exception:
            logger.exception("Tracing setup failed; continuing without it")
            return None
        trace.set_tracer_provider(provider)
        logger.info(
            "Tracing started: service=%s exporter=%s sample_rate=%s",
            settings.app_name,
            settings.telemetry_exporter,
            settings.telemetry_sample_rate,
        )
        return cls(provider)

    def instrument(
        self, app: FastAPI, engine: AsyncEngine | None, redis_enabled: bool
    ) -> None:
        targets: list[tuple[str, Callable[[], None]]] = [
            (
                "fastapi",
                lambda: FastAPIInstrumentor.instrument_app(
                    app, tracer_provider=self.provider, excluded_urls=UNTRACED_URLS
                ),
            ),
            (
                "logging",
                lambda: LoggingInstrumentor().instrument(tracer_provider=self.provider),
            ),
        ]
        if engine is not None:
            targets.append(
                (
                    "sqlalchemy",
                    lambda: SQLAlchemyInstrumentor().instrument(
                        engine=engine.sync_engine, tracer_provider=self.provider
                    ),
                )
            )
        if redis_enabled:
            targets.append(
                ("redis", lambda: RedisInstrumentor().instrument(tracer_provider=self.provider))
            )
        for name, apply in targets:
            try:
                apply()
            except Exception:
                logger.exception("Failed to instrument %s", name)
                continue
            self.instrumented.append(name)
        logger.info("Tracing instrumented: %s", ", ".join(self.instrumented) or "nothing")

    def shutdown(self) -> None:
        """Flush pending spans."""
        try:
            self.provider.shutdown()
        except Exception:
            logger.exception("Tracing shutdown failed")
