"""Create all tables from the models (local development / SQLite).

Usage:
    uv run python -m scripts.init_db
Postgres deployments use Alembic migrations instead.
"""

import asyncio

from app.core.config import get_settings
from app.infrastructure.persistence import database


async def main() -> None:
    """Create tables on the configured database."""
    settings = get_settings()
    await database.create_all()
    print(f"Tables created on {settings.database_url.split('://', 1)[0]}")
    if database.engine is not None:
        await database.engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
