"""Principal repository: lookups, admin provisioning, local-field updates and sync upsert.

Interface methods return application DTOs; ORM objects never leave this module.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.principal import PrincipalResult
from app.application.interfaces.services import ICacheService
from app.domain.enums import MergeOutcome, Role
from app.domain.exceptions import (
    PersistenceFailure,
    PrincipalAlreadyExistsException,
    ValidationException,
)
from app.domain.value_objects import SyncRecord
from app.infrastructure.cache.keys import principal_key
from app.infrastructure.persistence.database import on_commit
from app.infrastructure.persistence.models.principal import Principal
from app.infrastructure.persistence.repositories.base import (
    BaseRepository,
    upsert_insert,
)
from app.shared.utils.datetime import ensure_utc, utc_now
from app.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)

# Columns owned by the CRM; the only ones sync may write on an existing row
SYNCED_FIELDS = ("first_name", "last_name", "email", "phone")


def principal_to_result(p: Principal) -> PrincipalResult:
    """Map ORM Principal to PrincipalResult (no password, no session hash)."""
    return PrincipalResult(
        id=p.id,
        external_id=p.external_id,
        first_name=p.first_name,
        last_name=p.last_name,
        email=p.email,
        phone=p.phone,
        role=Role(p.role),
        is_active=p.is_active,
        username=p.username,
        last_synced_at=ensure_utc(p.last_synced_at),
    )


def _result_to_cache(r: PrincipalResult) -> dict[str, Any]:
    return {
        "id": r.id,
        "external_id": r.external_id,
        "first_name": r.first_name,
        "last_name": r.last_name,
        "email": r.email,
        "phone": r.phone,
        "role": r.role.value,
        "is_active": r.is_active,
        "username": r.username,
        "last_synced_at": r.last_synced_at.isoformat() if r.last_synced_at else None,
    }


def _result_from_cache(data: dict[str, Any]) -> PrincipalResult:
    synced = data.get("last_synced_at")
    return PrincipalResult(
        id=data["id"],
        external_id=data.get("external_id"),
        first_name=data.get("first_name"),
        last_name=data.get("last_name"),
        email=data.get("email"),
        phone=data.get("phone"),
        role=Role(data["role"]),
        is_active=bool(data["is_active"]),
        username=data.get("username"),
        last_synced_at=datetime.fromisoformat(synced) if synced else None,
    )


class PrincipalRepository(BaseRepository[Principal]):
    """Principal repository. Caches read-models by id when a cache is configured."""

    def __init__(
        self,
        db: AsyncSession,
        cache: ICacheService | None = None,
        cache_ttl: int = 120,
    ) -> None:
        super().__init__(db, Principal)
        self.cache = cache
        self.cache_ttl = cache_ttl

    async def _on_after_create(self, obj: Principal) -> None:
        await self.invalidate_cached([obj.id])

    async def _on_after_update(self, obj: Principal) -> None:
        await self.invalidate_cached([obj.id])

    async def invalidate_cached(self, principal_ids: list[str]) -> None:
        """Drop cached read-models now and again after the transaction commits.

        A reader running before the commit can re-cache the old row; the
        second delete clears it.
        """
        if not principal_ids or not self.cache or not self.cache.is_available():
            return
        keys = [principal_key(pid) for pid in principal_ids]
        await self.cache.delete(*keys)
        cache = self.cache

        async def _delete_after_commit() -> None:
            await cache.delete(*keys)

        on_commit(self.db, _delete_after_commit)

    async def get_result(self, principal_id: str) -> PrincipalResult | None:
        if self.cache and self.cache.is_available():
            cached = await self.cache.get(principal_key(principal_id))
            if cached is not None:
                return _result_from_cache(cached)
        principal = await self.get_by_id(principal_id)
        if principal is None:
            return None
        result = principal_to_result(principal)
        if self.cache and self.cache.is_available():
            await self.cache.set(
                principal_key(principal_id), _result_to_cache(result), ttl=self.cache_ttl
            )
        return result

    async def get_admin(self) -> PrincipalResult | None:
        result = await self.db.execute(
            select(Principal)
            .where(Principal.role == Role.ADMIN.value)
            .order_by(Principal.created_at)
            .limit(1)
        )
        principal = result.scalar_one_or_none()
        return principal_to_result(principal) if principal else None

    async def get_login_record(
        self, username: str
    ) -> tuple[PrincipalResult, str | None] | None:
        """Return (principal, hashed_password) for username, or None."""
        result = await self.db.execute(
            select(Principal).where(Principal.username == username)
        )
        principal = result.scalar_one_or_none()
        if principal is None:
            return None
        return principal_to_result(principal), principal.hashed_password

    async def create_admin(
        self, username: str, hashed_password: str, email: str | None = None
    ) -> PrincipalResult:
        """Create the admin principal; raise PrincipalAlreadyExistsException if username is taken."""
        admin = Principal(
            role=Role.ADMIN.value,
            is_active=True,
            username=username,
            hashed_password=hashed_password,
            email=email,
        )
        try:
            async with self.db.begin_nested():
                created = await self.create(admin)
        except IntegrityError:
            raise PrincipalAlreadyExistsException()
        return principal_to_result(created)

    async def list_principals(
        self,
        role: Role | None = None,
        is_active: bool | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[PrincipalResult]:
        stmt = select(Principal)
        if role is not None:
            stmt = stmt.where(Principal.role == role.value)
        if is_active is not None:
            stmt = stmt.where(Principal.is_active == is_active)
        stmt = (
            stmt.order_by(Principal.created_at.desc(), Principal.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [principal_to_result(p) for p in result.scalars().all()]

    async def set_active(
        self, principal_id: str, is_active: bool
    ) -> PrincipalResult | None:
        principal = await self.get_by_id(principal_id)
        if principal is None:
            return None
        principal.is_active = is_active
        return principal_to_result(await self.update(principal))

    async def set_credentials(
        self, principal_id: str, hashed_password: str, username: str | None = None
    ) -> PrincipalResult | None:
        """Replace the password hash (and username if given).

        Raises:
            PrincipalAlreadyExistsException: If username belongs to another principal.
        """
        principal = await self.get_by_id(principal_id)
        if principal is None:
            return None
        try:
            async with self.db.begin_nested():
                principal.hashed_password = hashed_password
                if username is not None:
                    principal.username = username
                updated = await self.update(principal)
        except IntegrityError:
            raise PrincipalAlreadyExistsException()
        return principal_to_result(updated)

    async def upsert_from_sync(
        self, record: SyncRecord, synced_at: datetime | None = None
    ) -> tuple[MergeOutcome, str | None]:
        """Merge one CRM record keyed by external_id in a single statement.

        New rows start as inactive sales principals without credentials.
        Existing rows only get their CRM-owned columns rewritten, and only
        when one of them differs. The RETURNING id tells the outcome apart:
        our fresh id means inserted, another id means updated, no row means
        unchanged.

        Raises:
            ValidationException: The record violates a constraint (skip it).
            PersistenceFailure: Any other database error.
        """
        new_id = generate_cuid()
        table: Any = Principal.__table__
        synced_at = synced_at or utc_now()
        try:
            stmt = upsert_insert(self.db, table).values(
                id=new_id,
                external_id=record.external_id,
                first_name=record.first_name,
                last_name=record.last_name,
                email=record.email,
                phone=record.phone,
                role=Role.SALES.value,
                is_active=False,
                last_synced_at=synced_at,
            )
            excluded = stmt.excluded
            stmt = stmt.on_conflict_do_update(
                index_elements=[table.c.external_id],
                set_={
                    **{name: excluded[name] for name in SYNCED_FIELDS},
                    "last_synced_at": excluded.last_synced_at,
                    "updated_at": func.now(),
                },
                where=or_(
                    *(
                        table.c[name].is_distinct_from(excluded[name])
                        for name in SYNCED_FIELDS
                    )
                ),
            ).returning(table.c.id)
            async with self.db.begin_nested():
                result = await self.db.execute(stmt)
                returned_id = result.scalar_one_or_none()
        except IntegrityError as e:
            logger.warning(
                "Sync record %s violates a constraint: %s",
                record.external_id,
                e.orig,
            )
            raise ValidationException(
                "Sync record conflicts with an existing principal", field="Id"
            ) from e
        except SQLAlchemyError as e:
            raise PersistenceFailure("principal.upsert") from e
        if returned_id is None:
            return MergeOutcome.UNCHANGED, None
        if returned_id == new_id:
            return MergeOutcome.INSERTED, returned_id
        return MergeOutcome.UPDATED, returned_id
