"""Stores for the single CRM credential: SQL singleton row or process memory.

The token, instance URL and fetch time are always replaced together, so a
reader never sees a new token paired with an old timestamp or vice versa.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.constants import EXTERNAL_CREDENTIAL_ID
from app.domain.exceptions import PersistenceFailure
from app.domain.value_objects import ExternalCredential
from app.infrastructure.persistence.models.external_credential import (
    ExternalCredentialRecord,
)
from app.infrastructure.persistence.repositories.base import upsert_insert
from app.infrastructure.security.encryption import CredentialEncryptor
from app.shared.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)

# fetched_at written by mark_stale; older than any freshness window
STALE_FETCHED_AT = datetime(1970, 1, 1, tzinfo=UTC)


class SqlCredentialStore:
    """Credential in the external_credential singleton row (token encrypted at rest).

    Each call runs in its own short transaction, independent of any request
    transaction, so a refreshed credential survives a later request failure.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        encryptor: CredentialEncryptor,
    ) -> None:
        self._session_factory = session_factory
        self._encryptor = encryptor

    async def _load_row(self, session: AsyncSession) -> ExternalCredentialRecord | None:
        result = await session.execute(
            select(ExternalCredentialRecord).where(
                ExternalCredentialRecord.id == EXTERNAL_CREDENTIAL_ID
            )
        )
        return result.scalar_one_or_none()

    async def load(self) -> ExternalCredential | None:
        """Return the stored credential, or None (also when it cannot be decrypted)."""
        try:
            async with self._session_factory() as session:
                row = await self._load_row(session)
        except SQLAlchemyError as e:
            raise PersistenceFailure("credential.load") from e
        if row is None:
            return None
        try:
            access_token = self._encryptor.decrypt(row.access_token)
        except ValueError:
            logger.warning("Stored CRM credential could not be decrypted; refetching")
            return None
        fetched_at = ensure_utc(row.fetched_at)
        assert fetched_at is not None
        return ExternalCredential(
            access_token=access_token,
            instance_url=row.instance_url,
            fetched_at=fetched_at,
        )

    async def save(self, credential: ExternalCredential) -> None:
        """Insert or replace the singleton row in one statement."""
        table = ExternalCredentialRecord.__table__
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    stmt = upsert_insert(session, table).values(
                        id=EXTERNAL_CREDENTIAL_ID,
                        access_token=self._encryptor.encrypt(credential.access_token),
                        instance_url=credential.instance_url,
                        fetched_at=credential.fetched_at,
                    )
                    excluded = stmt.excluded
                    await session.execute(
                        stmt.on_conflict_do_update(
                            index_elements=[table.c.id],
                            set_={
                                "access_token": excluded.access_token,
                                "instance_url": excluded.instance_url,
                                "fetched_at": excluded.fetched_at,
                            },
                        )
                    )
        except SQLAlchemyError as e:
            raise PersistenceFailure("credential.save") from e

    async def mark_stale(self, access_token: str) -> bool:
        """Force the stored credential stale if it still holds access_token.

        The UPDATE matches on the ciphertext that was read, so a credential
        replaced concurrently by another process is left alone.
        """
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    row = await self._load_row(session)
                    if row is None:
                        return False
                    try:
                        stored_token = self._encryptor.decrypt(row.access_token)
                    except ValueError:
                        stored_token = None
                    if stored_token is not None and stored_token != access_token:
                        return False
                    result = await session.execute(
                        update(ExternalCredentialRecord)
                        .where(
                            ExternalCredentialRecord.id == EXTERNAL_CREDENTIAL_ID,
                            ExternalCredentialRecord.access_token == row.access_token,
                        )
                        .values(fetched_at=STALE_FETCHED_AT)
                        .execution_options(synchronize_session=False)
                    )
        except SQLAlchemyError as e:
            raise PersistenceFailure("credential.mark_stale") from e
        return result.rowcount > 0


class InMemoryCredentialStore:
    """Credential in a process-wide slot.

    Rebinding one immutable dataclass is atomic, which is all the
    consistency this backend needs.
    """

    def __init__(self) -> None:
        self._credential: ExternalCredential | None = None

    async def load(self) -> ExternalCredential | None:
        return self._credential

    async def save(self, credential: ExternalCredential) -> None:
        self._credential = credential

    async def mark_stale(self, access_token: str) -> bool:
        current = self._credential
        if current is None or current.access_token != access_token:
            return False
        self._credential = dataclasses.replace(current, fetched_at=STALE_FETCHED_AT)
        return True
