"""Base repository: generic lookups, create/update with lifecycle hooks (cache invalidation)."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.persistence.database import Base

# Dialects whose INSERT supports ON CONFLICT ... DO UPDATE ... RETURNING
_UPSERT_INSERTS: dict[str, Any] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert_insert(db: AsyncSession, table: Any) -> Any:
    """Return a dialect-specific INSERT for table that supports on_conflict_do_update.

    Raises:
        NotImplementedError: If the bound dialect has no upsert support here.
    """
    dialect = db.get_bind().dialect.name
    try:
        insert_fn = _UPSERT_INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(f"Upsert is not supported for dialect {dialect!r}")
    return insert_fn(table)


class BaseRepository[ModelType: Base]:
    """Base repository with get_by_id, create, update and hooks.

    Subclasses override _on_after_create and _on_after_update for cache
    invalidation. LSP: subclasses are substitutable for BaseRepository.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    async def get_by_id(self, entity_id: str) -> ModelType | None:
        """Return a single record by primary key, or None (always re-read from the row)."""
        model: Any = self.model
        result = await self.db.execute(
            select(self.model)
            .where(model.id == entity_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create(self, obj: ModelType) -> ModelType:
        """Persist a new record and run _on_after_create hook."""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        await self._on_after_create(obj)
        return obj

    async def update(self, obj: ModelType) -> ModelType:
        """Flush changes to an attached record and run _on_after_update hook."""
        await self.db.flush()
        await self.db.refresh(obj)
        await self._on_after_update(obj)
        return obj

    async def _on_after_create(self, obj: ModelType) -> None:
        """Override in subclasses to invalidate caches."""

    async def _on_after_update(self, obj: ModelType) -> None:
        """Override in subclasses to invalidate caches."""
