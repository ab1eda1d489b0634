"""Credential cache: one CRM bearer credential shared by every request.

acquire() returns the stored credential while it is inside the freshness
window and otherwise refreshes it. Refreshes are single-flight per process:
waiters on the lock re-read the store and reuse a refresh that just finished.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import TypeVar

from app.application.interfaces.repositories import ICredentialStore
from app.application.interfaces.services import ICredentialExchanger
from app.domain.exceptions import ExternalAuthFailure, ExternalAuthorizationRejected
from app.domain.value_objects import ExternalCredential
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import traced
from app.shared.utils.datetime import utc_now

logger = get_logger(__name__)

T = TypeVar("T")


class CredentialCache:
    """Process-wide cache for the CRM credential, backed by an ICredentialStore."""

    def __init__(
        self,
        store: ICredentialStore,
        exchanger: ICredentialExchanger,
        freshness_window: timedelta,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._exchanger = exchanger
        self._window = freshness_window
        self._clock = clock
        self._lock = asyncio.Lock()

    def _usable(self, credential: ExternalCredential | None) -> bool:
        return credential is not None and credential.is_fresh(self._clock(), self._window)

    async def acquire(self) -> ExternalCredential:
        """Return a usable credential, exchanging for a new one only when stale.

        Raises:
            ExternalAuthFailure: The exchange failed; the stored value is untouched.
        """
        credential = await self._store.load()
        if self._usable(credential):
            assert credential is not None
            return credential
        async with self._lock:
            credential = await self._store.load()
            if self._usable(credential):
                assert credential is not None
                return credential
            return await self._refresh()

    @traced("crm.credential.refresh")
    async def _refresh(self) -> ExternalCredential:
        access_token, instance_url = await self._exchanger.exchange_credentials()
        credential = ExternalCredential(
            access_token=access_token,
            instance_url=instance_url,
            fetched_at=self._clock(),
        )
        await self._store.save(credential)
        logger.info("CRM credential refreshed for %s", instance_url)
        return credential

    async def invalidate(self, stale: ExternalCredential) -> bool:
        """Mark stale as expired if it is still the stored credential.

        Returns False when another request already replaced it.
        """
        return await self._store.mark_stale(stale.access_token)

    async def call_with_credential(
        self, fn: Callable[[ExternalCredential], Awaitable[T]]
    ) -> T:
        """Run fn with a credential; on a CRM 401 refresh once and retry.

        Raises:
            ExternalAuthFailure: Refresh failed, or the fresh token was rejected too.
        """
        credential = await self.acquire()
        try:
            return await fn(credential)
        except ExternalAuthorizationRejected:
            logger.info("CRM rejected the cached credential; refreshing once")
            await self.invalidate(credential)
        credential = await self.acquire()
        try:
            return await fn(credential)
        except ExternalAuthorizationRejected as e:
            logger.error("CRM rejected a freshly exchanged credential")
            raise ExternalAuthFailure(
                "access token rejected after refresh", status_code=401
            ) from e
