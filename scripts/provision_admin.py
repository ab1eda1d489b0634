"""Create the admin principal from settings, or refresh its password.

Usage:
    uv run python -m scripts.provision_admin
Reads ADMIN_USERNAME, ADMIN_PASSWORD and ADMIN_EMAIL. All imports use app.*.
"""

import asyncio
import sys

from app.core.config import get_settings
from app.domain.exceptions import SfdcSyncException
from app.infrastructure.persistence import database
from app.infrastructure.persistence.repositories import PrincipalRepository
from app.infrastructure.security.password import get_password_hash


async def main() -> None:
    """Provision or refresh the admin principal."""
    settings = get_settings()
    password = settings.admin_password.get_secret_value()
    if not password:
        print("ADMIN_PASSWORD is not set", file=sys.stderr)
        sys.exit(1)

    hashed = get_password_hash(password)
    factory = database.get_session_factory()
    try:
        async with factory() as session:
            async with session.begin():
                repo = PrincipalRepository(session)
                admin = await repo.get_admin()
                if admin is None:
                    admin = await repo.create_admin(
                        settings.admin_username, hashed, email=settings.admin_email
                    )
                    print(f"Admin principal created: {admin.id} ({admin.username})")
                else:
                    username = (
                        settings.admin_username
                        if admin.username != settings.admin_username
                        else None
                    )
                    await repo.set_credentials(admin.id, hashed, username=username)
                    print(f"Admin credentials refreshed: {admin.id}")
    except SfdcSyncException as e:
        print(f"Provisioning failed: {e.message}", file=sys.stderr)
        sys.exit(1)
    finally:
        if database.engine is not None:
            await database.engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
