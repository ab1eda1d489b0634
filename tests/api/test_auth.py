"""Tests for auth endpoints: login, logout, session expiry and own profile."""

from datetime import datetime

from httpx import AsyncClient

from tests.helpers import ADMIN_PASSWORD, ADMIN_USERNAME, MutableClock, login


async def test_login_missing_body_returns_422(client: AsyncClient) -> None:
    """POST /api/v1/auth/login with no body returns 422."""
    response = await client.post("/api/v1/auth/login", json={})
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_admin_login_provisions_admin_and_returns_session(
    client: AsyncClient,
) -> None:
    """First admin login creates the admin principal and issues a 15 minute session."""
    response = await client.post(
        "/api/v1/auth/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["role"] == "admin"
    assert data["token_type"] == "bearer"
    assert len(data["session_token"]) >= 32
    expires_at = datetime.fromisoformat(data["expires_at"])
    assert expires_at.tzinfo is not None


async def test_login_wrong_password_returns_401(client: AsyncClient) -> None:
    """Wrong password gets the generic message and a WWW-Authenticate header."""
    response = await client.post(
        "/api/v1/auth/login",
        json={"username": ADMIN_USERNAME, "password": "not-the-password"},
    )
    assert response.status_code == 401
    body = response.json()
    assert body["error"] == "UNAUTHENTICATED"
    assert body["message"] == "Invalid credentials"
    assert response.headers.get("WWW-Authenticate") == "Bearer"


async def test_login_unknown_user_same_message_as_wrong_password(
    client: AsyncClient,
) -> None:
    """Unknown username is indistinguishable from a wrong password."""
    unknown = await client.post(
        "/api/v1/auth/login", json={"username": "nobody", "password": "whatever123"}
    )
    wrong = await client.post(
        "/api/v1/auth/login",
        json={"username": ADMIN_USERNAME, "password": "whatever123"},
    )
    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json()


async def test_me_without_token_returns_401(client: AsyncClient) -> None:
    """GET /api/v1/auth/me without a token returns 401."""
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 401


async def test_me_with_unknown_token_returns_401(client: AsyncClient) -> None:
    """A token that was never issued is rejected."""
    response = await client.get(
        "/api/v1/auth/me", headers={"Authorization": "Bearer not-a-real-token"}
    )
    assert response.status_code == 401


async def test_me_returns_own_profile(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    """GET /api/v1/auth/me returns the admin profile without secrets."""
    response = await client.get("/api/v1/auth/me", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["role"] == "admin"
    assert data["username"] == ADMIN_USERNAME
    assert data["is_active"] is True
    assert "hashed_password" not in data
    assert "session_token_hash" not in data


async def test_session_header_is_accepted(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    """The token can be sent in X-Session-Token instead of Authorization."""
    token = admin_headers["Authorization"].removeprefix("Bearer ")
    response = await client.get("/api/v1/auth/me", headers={"X-Session-Token": token})
    assert response.status_code == 200


async def test_new_login_replaces_previous_session(client: AsyncClient) -> None:
    """Logging in again invalidates the earlier token."""
    first = await login(client, ADMIN_USERNAME, ADMIN_PASSWORD)
    second = await login(client, ADMIN_USERNAME, ADMIN_PASSWORD)
    assert (await client.get("/api/v1/auth/me", headers=first)).status_code == 401
    assert (await client.get("/api/v1/auth/me", headers=second)).status_code == 200


async def test_logout_revokes_token(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    """POST /api/v1/auth/logout returns 204 and the token stops working."""
    response = await client.post("/api/v1/auth/logout", headers=admin_headers)
    assert response.status_code == 204
    response = await client.get("/api/v1/auth/me", headers=admin_headers)
    assert response.status_code == 401


async def test_logout_is_idempotent(client: AsyncClient) -> None:
    """Logout with an unknown or missing token is still 204."""
    response = await client.post(
        "/api/v1/auth/logout", headers={"Authorization": "Bearer unknown"}
    )
    assert response.status_code == 204
    response = await client.post("/api/v1/auth/logout")
    assert response.status_code == 204


async def test_session_expires_after_ttl(
    client: AsyncClient, clock: MutableClock, use_clock
) -> None:
    """A session is valid before its expiry instant and rejected from it onwards."""
    use_clock()
    headers = await login(client, ADMIN_USERNAME, ADMIN_PASSWORD)
    clock.advance(minutes=14, seconds=59)
    assert (await client.get("/api/v1/auth/me", headers=headers)).status_code == 200
    clock.advance(seconds=1)
    response = await client.get("/api/v1/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired session"


async def test_change_own_password(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    """PUT /api/v1/auth/me/password checks the current password first."""
    response = await client.put(
        "/api/v1/auth/me/password",
        json={"current_password": "wrong-password", "new_password": "NewPassword123"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["details"] == {"field": "current_password"}

    response = await client.put(
        "/api/v1/auth/me/password",
        json={"current_password": ADMIN_PASSWORD, "new_password": "NewPassword123"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    await login(client, ADMIN_USERNAME, "NewPassword123")


async def test_change_own_password_too_short_returns_422(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    response = await client.put(
        "/api/v1/auth/me/password",
        json={"current_password": ADMIN_PASSWORD, "new_password": "short"},
        headers=admin_headers,
    )
    assert response.status_code == 422


async def test_login_is_rate_limited(client: AsyncClient) -> None:
    """The eleventh login attempt within a minute is rejected with 429."""
    for _ in range(10):
        await client.post(
            "/api/v1/auth/login", json={"username": "nobody", "password": "x"}
        )
    response = await client.post(
        "/api/v1/auth/login", json={"username": "nobody", "password": "x"}
    )
    assert response.status_code == 429


async def test_session_store_failure_returns_503_not_401(client: AsyncClient) -> None:
    """A storage failure during validation is reported as 503."""
    from app.api.v1.dependencies import get_session_store
    from app.domain.exceptions import PersistenceFailure
    from app.main import app

    class BrokenStore:
        async def validate(self, token):
            raise PersistenceFailure("session.validate")

    app.dependency_overrides[get_session_store] = lambda: BrokenStore()
    response = await client.get(
        "/api/v1/auth/me", headers={"Authorization": "Bearer anything"}
    )
    assert response.status_code == 503
    assert response.json()["error"] == "PERSISTENCE_FAILURE"
