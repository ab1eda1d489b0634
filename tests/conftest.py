"""Pytest configuration and fixtures for the sync service.

Environment is pinned before app.main is imported: an in-memory SQLite
database (rebuilt for every test), no Redis, no telemetry and the
in-process credential store. The CRM is replaced by FakeCrm on app.state.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-0123456789abcdef"
os.environ["ENCRYPTION_SALT"] = "test-salt-0123456789"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "AdminPassword123!"
os.environ["REDIS_ENABLED"] = "false"
os.environ["TELEMETRY_ENABLED"] = "false"
os.environ["CREDENTIAL_STORE"] = "memory"

from collections.abc import Callable  # noqa: E402
from datetime import timedelta  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from app.application.services.credential_cache import CredentialCache  # noqa: E402
from app.core.config import get_settings  # noqa: E402
from app.core.limiter import limiter  # noqa: E402
from app.infrastructure.persistence import database  # noqa: E402
from app.infrastructure.persistence.repositories import (  # noqa: E402
    InMemoryCredentialStore,
)
from app.main import app  # noqa: E402
from tests.helpers import (  # noqa: E402
    ADMIN_PASSWORD,
    ADMIN_USERNAME,
    FakeCrm,
    MutableClock,
    contact,
    login,
)


@pytest.fixture(autouse=True)
async def fresh_database() -> None:
    """New in-memory database per test; rate limits reset."""
    if database.engine is not None:
        await database.engine.dispose()
    database.engine = None
    database.AsyncSessionLocal = None
    await database.create_all()
    limiter.reset()
    yield
    if database.engine is not None:
        await database.engine.dispose()
    database.engine = None
    database.AsyncSessionLocal = None


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def fake_crm() -> FakeCrm:
    return FakeCrm()


@pytest.fixture
def credential_cache(fake_crm: FakeCrm, clock: MutableClock) -> CredentialCache:
    return CredentialCache(
        store=InMemoryCredentialStore(),
        exchanger=fake_crm,
        freshness_window=timedelta(minutes=12),
        clock=clock,
    )


@pytest.fixture
async def db_session() -> AsyncSession:
    """Database session for repository/integration tests. Rolls back after test."""
    factory = database.get_session_factory()
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def client(
    fake_crm: FakeCrm, credential_cache: CredentialCache
) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI).

    ASGITransport does not run the lifespan, so the state it would set up
    is provided here.
    """
    app.state.cache = None
    app.state.crm_client = fake_crm
    app.state.credential_cache = credential_cache
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def use_clock(clock: MutableClock) -> Callable[[], None]:
    """Route session expiry through the test clock."""
    from app.api.v1.dependencies import get_clock

    def _install() -> None:
        app.dependency_overrides[get_clock] = lambda: clock

    return _install


@pytest.fixture
async def admin_headers(client: AsyncClient) -> dict[str, str]:
    """Log in as the configured admin (provisioned on first login)."""
    return await login(client, ADMIN_USERNAME, ADMIN_PASSWORD)


@pytest.fixture
async def sales_principal(
    client: AsyncClient, admin_headers: dict[str, str], fake_crm: FakeCrm
) -> dict[str, Any]:
    """Sync one contact, give it credentials and activate it.

    Returns its id, username, password and login headers.
    """
    fake_crm.records = [contact("003SALES0001")]
    response = await client.post("/api/v1/sync", headers=admin_headers)
    assert response.status_code == 200, response.text
    users = await client.get(
        "/api/v1/users", params={"role": "sales"}, headers=admin_headers
    )
    principal_id = users.json()[0]["id"]
    password = "SalesPassword1"
    response = await client.post(
        f"/api/v1/users/{principal_id}/password",
        json={"password": password, "username": "sales.rep"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    response = await client.patch(
        f"/api/v1/users/{principal_id}/activation",
        json={"is_active": True},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    headers = await login(client, "sales.rep", password)
    return {
        "id": principal_id,
        "username": "sales.rep",
        "password": password,
        "headers": headers,
    }
