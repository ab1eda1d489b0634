"""Smoke tests for health and app wiring."""

from httpx import AsyncClient

from app.infrastructure.persistence.database import get_db
from app.main import ROOT_BANNER, app


async def test_health_returns_up(client: AsyncClient) -> None:
    """GET /api/v1/health returns 200 and status UP."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "UP"}


async def test_ready_returns_up_when_database_answers(client: AsyncClient) -> None:
    """GET /api/v1/health/ready runs SELECT 1 against the database."""
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "UP"


async def test_ready_returns_503_when_database_fails(client: AsyncClient) -> None:
    """Readiness reports DOWN with 503 when the query fails."""
    from sqlalchemy.exc import OperationalError

    class BrokenSession:
        async def execute(self, *args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    async def broken_db():
        yield BrokenSession()

    app.dependency_overrides[get_db] = broken_db
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 503
    assert response.json()["status"] == "DOWN"


async def test_root_returns_banner(client: AsyncClient) -> None:
    """GET / returns the plain-text banner."""
    response = await client.get("/")
    assert response.status_code == 200
    assert response.text == ROOT_BANNER
    assert response.text.startswith("SFDC Temp API is running")
    assert "text/plain" in response.headers.get("content-type", "")


async def test_request_id_is_echoed(client: AsyncClient) -> None:
    """X-Request-ID from the caller comes back on the response."""
    response = await client.get("/api/v1/health", headers={"X-Request-ID": "req-123"})
    assert response.headers.get("X-Request-ID") == "req-123"


async def test_request_id_is_generated(client: AsyncClient) -> None:
    """A request without X-Request-ID still gets one."""
    response = await client.get("/api/v1/health")
    assert response.headers.get("X-Request-ID")


async def test_root_health_returns_up(client: AsyncClient) -> None:
    """GET /health answers without the API prefix."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "UP"}
