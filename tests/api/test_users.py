"""Tests for the users API: visibility by role, activation and credential reset."""

from typing import Any

from httpx import AsyncClient

from tests.helpers import FakeCrm, contact, login


async def test_list_users_requires_session(client: AsyncClient) -> None:
    response = await client.get("/api/v1/users")
    assert response.status_code == 401


async def test_admin_sees_all_principals(
    client: AsyncClient, admin_headers: dict[str, str], sales_principal: dict[str, Any]
) -> None:
    response = await client.get("/api/v1/users", headers=admin_headers)
    assert response.status_code == 200
    roles = sorted(p["role"] for p in response.json())
    assert roles == ["admin", "sales"]


async def test_admin_filters_by_activation(
    client: AsyncClient, admin_headers: dict[str, str], fake_crm: FakeCrm
) -> None:
    fake_crm.records = [contact("003A"), contact("003B")]
    await client.post("/api/v1/sync", headers=admin_headers)
    response = await client.get(
        "/api/v1/users", params={"is_active": "false"}, headers=admin_headers
    )
    assert {p["external_id"] for p in response.json()} == {"003A", "003B"}
    response = await client.get(
        "/api/v1/users", params={"limit": 1}, headers=admin_headers
    )
    assert len(response.json()) == 1


async def test_sales_sees_only_itself(
    client: AsyncClient, sales_principal: dict[str, Any]
) -> None:
    response = await client.get("/api/v1/users", headers=sales_principal["headers"])
    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == [sales_principal["id"]]


async def test_sales_cannot_read_other_principal(
    client: AsyncClient, admin_headers: dict[str, str], sales_principal: dict[str, Any]
) -> None:
    me = await client.get("/api/v1/auth/me", headers=admin_headers)
    admin_id = me.json()["id"]
    response = await client.get(
        f"/api/v1/users/{admin_id}", headers=sales_principal["headers"]
    )
    assert response.status_code == 403
    response = await client.get(
        f"/api/v1/users/{sales_principal['id']}", headers=sales_principal["headers"]
    )
    assert response.status_code == 200


async def test_get_unknown_user_returns_404(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    response = await client.get("/api/v1/users/does-not-exist", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "RESOURCE_NOT_FOUND"


async def test_sales_cannot_change_activation(
    client: AsyncClient, sales_principal: dict[str, Any]
) -> None:
    response = await client.patch(
        f"/api/v1/users/{sales_principal['id']}/activation",
        json={"is_active": False},
        headers=sales_principal["headers"],
    )
    assert response.status_code == 403


async def test_deactivation_ends_session_and_blocks_login(
    client: AsyncClient, admin_headers: dict[str, str], sales_principal: dict[str, Any]
) -> None:
    response = await client.patch(
        f"/api/v1/users/{sales_principal['id']}/activation",
        json={"is_active": False},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["is_active"] is False
    me = await client.get("/api/v1/auth/me", headers=sales_principal["headers"])
    assert me.status_code == 401
    response = await client.post(
        "/api/v1/auth/login",
        json={
            "username": sales_principal["username"],
            "password": sales_principal["password"],
        },
    )
    assert response.status_code == 401


async def test_admin_cannot_be_deactivated(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    admin_id = (await client.get("/api/v1/auth/me", headers=admin_headers)).json()["id"]
    response = await client.patch(
        f"/api/v1/users/{admin_id}/activation",
        json={"is_active": False},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["details"] == {"field": "is_active"}


async def test_password_reset_requires_username_first_time(
    client: AsyncClient, admin_headers: dict[str, str], fake_crm: FakeCrm
) -> None:
    fake_crm.records = [contact("003A")]
    await client.post("/api/v1/sync", headers=admin_headers)
    principal_id = (
        await client.get("/api/v1/users", params={"role": "sales"}, headers=admin_headers)
    ).json()[0]["id"]
    response = await client.post(
        f"/api/v1/users/{principal_id}/password",
        json={"password": "LongEnough1"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["details"] == {"field": "username"}


async def test_password_reset_with_taken_username_returns_409(
    client: AsyncClient, admin_headers: dict[str, str], fake_crm: FakeCrm
) -> None:
    fake_crm.records = [contact("003A")]
    await client.post("/api/v1/sync", headers=admin_headers)
    principal_id = (
        await client.get("/api/v1/users", params={"role": "sales"}, headers=admin_headers)
    ).json()[0]["id"]
    response = await client.post(
        f"/api/v1/users/{principal_id}/password",
        json={"password": "LongEnough1", "username": "admin"},
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["error"] == "PRINCIPAL_ALREADY_EXISTS"


async def test_password_reset_ends_existing_session(
    client: AsyncClient, admin_headers: dict[str, str], sales_principal: dict[str, Any]
) -> None:
    response = await client.post(
        f"/api/v1/users/{sales_principal['id']}/password",
        json={"password": "AnotherPassword1"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    me = await client.get("/api/v1/auth/me", headers=sales_principal["headers"])
    assert me.status_code == 401
    await login(client, sales_principal["username"], "AnotherPassword1")


async def test_inactive_principal_with_password_cannot_log_in(
    client: AsyncClient, admin_headers: dict[str, str], fake_crm: FakeCrm
) -> None:
    """Credentials alone are not enough; the admin must activate the principal."""
    fake_crm.records = [contact("003A")]
    await client.post("/api/v1/sync", headers=admin_headers)
    principal_id = (
        await client.get("/api/v1/users", params={"role": "sales"}, headers=admin_headers)
    ).json()[0]["id"]
    await client.post(
        f"/api/v1/users/{principal_id}/password",
        json={"password": "LongEnough1", "username": "rep"},
        headers=admin_headers,
    )
    response = await client.post(
        "/api/v1/auth/login", json={"username": "rep", "password": "LongEnough1"}
    )
    assert response.status_code == 401
