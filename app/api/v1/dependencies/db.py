"""DB-backed dependencies (composition root): repositories and stores on the request session."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.infrastructure.cache.redis_cache import CacheService
from app.infrastructure.persistence.database import get_db_transactional
from app.infrastructure.persistence.repositories import (
    PrincipalRepository,
    SessionStore,
)
from app.infrastructure.security.password import BcryptPasswordHasher
from app.shared.utils.datetime import utc_now


def get_clock() -> Callable[[], datetime]:
    """Time source for session expiry (tests override with a fixed clock)."""
    return utc_now


def get_cache(request: Request) -> CacheService | None:
    """Redis cache created in lifespan, or None when disabled."""
    return getattr(request.app.state, "cache", None)


def get_password_hasher() -> BcryptPasswordHasher:
    return BcryptPasswordHasher()


async def get_principal_repo(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    cache: Annotated[CacheService | None, Depends(get_cache)],
) -> PrincipalRepository:
    """Principal repository on the request transaction."""
    return PrincipalRepository(
        db, cache=cache, cache_ttl=get_settings().cache_ttl_principals
    )


async def get_session_store(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
) -> SessionStore:
    """Session store on the request transaction (same session as the repositories)."""
    return SessionStore(
        db, ttl=timedelta(minutes=get_settings().session_ttl_minutes), clock=clock
    )
