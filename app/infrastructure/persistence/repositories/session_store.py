"""Session store: opaque session tokens kept on the principal row.

Each write is one UPDATE statement, so a login, a logout and an expiry
eviction cannot interleave into a half-written session. The store runs
on the request's session so issuing a token joins the request transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.principal import IssuedSession, SessionLookup
from app.domain.enums import SessionStatus
from app.domain.exceptions import PersistenceFailure, ResourceNotFoundException
from app.infrastructure.persistence.models.principal import Principal
from app.infrastructure.persistence.repositories.principal_repo import (
    principal_to_result,
)
from app.infrastructure.security.tokens import (
    generate_session_token,
    hash_session_token,
)
from app.shared.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)

_NO_SYNC = {"synchronize_session": False}


class SessionStore:
    """Issue, validate and revoke session tokens with a fixed TTL.

    Expiry is checked lazily at validation time; expired rows are cleared
    on the next issue(). Database errors surface as PersistenceFailure,
    never as an unauthenticated result.
    """

    def __init__(
        self,
        db: AsyncSession,
        ttl: timedelta,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.db = db
        self.ttl = ttl
        self._clock = clock

    async def issue(self, principal_id: str) -> IssuedSession:
        """Issue a token for principal, replacing any token it held.

        Raises:
            ResourceNotFoundException: If the principal does not exist.
            PersistenceFailure: On database error.
        """
        now = self._clock()
        token = generate_session_token()
        expires_at = now + self.ttl
        try:
            await self.db.execute(
                update(Principal)
                .where(Principal.session_expires_at <= now)
                .values(session_token_hash=None, session_expires_at=None)
                .execution_options(**_NO_SYNC)
            )
            result = await self.db.execute(
                update(Principal)
                .where(Principal.id == principal_id)
                .values(
                    session_token_hash=hash_session_token(token),
                    session_expires_at=expires_at,
                )
                .execution_options(**_NO_SYNC)
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure("session.issue") from e
        if result.rowcount == 0:
            raise ResourceNotFoundException("principal", principal_id)
        logger.info("Session issued for principal %s", principal_id)
        return IssuedSession(token=token, expires_at=expires_at)

    async def validate(self, token: str | None) -> SessionLookup:
        """Resolve token to its principal; EXPIRED from the expiry instant onwards."""
        if not token:
            return SessionLookup(status=SessionStatus.NOT_FOUND)
        try:
            result = await self.db.execute(
                select(Principal)
                .where(Principal.session_token_hash == hash_session_token(token))
                .execution_options(populate_existing=True)
            )
            principal = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceFailure("session.validate") from e
        if principal is None:
            return SessionLookup(status=SessionStatus.NOT_FOUND)
        expires_at = ensure_utc(principal.session_expires_at)
        if expires_at is None or self._clock() >= expires_at:
            return SessionLookup(status=SessionStatus.EXPIRED)
        return SessionLookup(
            status=SessionStatus.VALID, principal=principal_to_result(principal)
        )

    async def revoke(self, token: str | None) -> None:
        """Clear the session holding token. Unknown or empty tokens are a no-op."""
        if not token:
            return
        try:
            await self.db.execute(
                update(Principal)
                .where(Principal.session_token_hash == hash_session_token(token))
                .values(session_token_hash=None, session_expires_at=None)
                .execution_options(**_NO_SYNC)
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure("session.revoke") from e

    async def revoke_for_principal(self, principal_id: str) -> None:
        """Clear whatever session principal currently holds."""
        try:
            await self.db.execute(
                update(Principal)
                .where(Principal.id == principal_id)
                .values(session_token_hash=None, session_expires_at=None)
                .execution_options(**_NO_SYNC)
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure("session.revoke") from e
