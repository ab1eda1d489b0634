"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (HTTP client, CRM credential
cache, Redis cache, telemetry, DB engine dispose).
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from app.application.services.credential_cache import CredentialCache
from app.core.config import Settings, get_settings
from app.infrastructure.external.crm.client import CrmClient
from app.infrastructure.persistence import database
from app.infrastructure.persistence.repositories.credential_store import (
    InMemoryCredentialStore,
    SqlCredentialStore,
)
from app.infrastructure.security.encryption import CredentialEncryptor
from app.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


def build_credential_cache(settings: Settings, crm_client: CrmClient) -> CredentialCache:
    """CredentialCache over the configured store backend (sql or memory)."""
    if settings.credential_store == "memory":
        store: InMemoryCredentialStore | SqlCredentialStore = InMemoryCredentialStore()
    else:
        store = SqlCredentialStore(
            database.get_session_factory(), CredentialEncryptor(settings)
        )
    return CredentialCache(
        store=store,
        exchanger=crm_client,
        freshness_window=timedelta(minutes=settings.credential_freshness_minutes),
    )


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: logging, shared HTTP client + CRM client + credential
    cache, Redis cache (if enabled), telemetry (if enabled). Shutdown
    order: HTTP client close, cache disconnect, telemetry shutdown, SQL
    engine dispose.
    """
    settings = get_settings()
    setup_logging()

    # ---- Startup ----
    # Shared HTTP client for CRM calls (connection reuse); per-call timeouts set by CrmClient.
    app.state.crm_http_client = httpx.AsyncClient(
        timeout=settings.crm_request_timeout_seconds
    )
    app.state.crm_client = CrmClient(app.state.crm_http_client, settings)
    app.state.credential_cache = build_credential_cache(settings, app.state.crm_client)
    logger.info("CRM credential cache ready (store=%s)", settings.credential_store)

    if settings.redis_enabled:
        from app.infrastructure.cache.redis_cache import CacheService

        cache = CacheService(settings=settings)
        await cache.connect()
        app.state.cache = cache
    else:
        app.state.cache = None

    app.state.telemetry = None
    if settings.telemetry_enabled:
        from app.shared.telemetry.telemetry import Telemetry

        telemetry = Telemetry.start(settings)
        if telemetry is not None:
            database.get_session_factory()
            telemetry.instrument(app, database.engine, settings.redis_enabled)
            app.state.telemetry = telemetry

    yield

    # ---- Shutdown ----
    if getattr(app.state, "crm_http_client", None) is not None:
        await app.state.crm_http_client.aclose()
        app.state.crm_http_client = None
        logger.info("CRM HTTP client closed")

    if getattr(app.state, "cache", None) is not None:
        await app.state.cache.disconnect()
        logger.info("Cache disconnected")

    if getattr(app.state, "telemetry", None) is not None:
        app.state.telemetry.shutdown()
        app.state.telemetry = None
        logger.info("Tracing stopped")

    if database.engine is not None:
        await database.engine.dispose()
        logger.info("Database engine disposed")
