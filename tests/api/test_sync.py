"""End-to-end tests for POST /api/v1/sync (admin-triggered reconciliation)."""

from typing import Any

from httpx import AsyncClient

from app.domain.exceptions import ExternalAuthFailure, ExternalFetchFailure
from tests.helpers import FakeCrm, contact


async def _sync(client: AsyncClient, headers: dict[str, str]) -> dict[str, Any]:
    response = await client.post("/api/v1/sync", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


async def _sales(client: AsyncClient, headers: dict[str, str]) -> list[dict[str, Any]]:
    response = await client.get(
        "/api/v1/users", params={"role": "sales"}, headers=headers
    )
    assert response.status_code == 200
    return response.json()


async def test_sync_without_token_returns_401(client: AsyncClient) -> None:
    response = await client.post("/api/v1/sync")
    assert response.status_code == 401


async def test_sync_as_sales_returns_403(
    client: AsyncClient, sales_principal: dict[str, Any]
) -> None:
    """Sales principals cannot trigger a sync."""
    response = await client.post("/api/v1/sync", headers=sales_principal["headers"])
    assert response.status_code == 403
    assert response.json()["error"] == "FORBIDDEN"


async def test_sync_inserts_new_contacts_as_inactive_sales(
    client: AsyncClient, admin_headers: dict[str, str], fake_crm: FakeCrm
) -> None:
    fake_crm.records = [contact("003A"), contact("003B", FirstName="Grace")]
    summary = await _sync(client, admin_headers)
    assert summary == {
        "fetched": 2,
        "inserted": 2,
        "updated": 0,
        "unchanged": 0,
        "skipped": 0,
        "skipped_ids": [],
    }
    principals = {p["external_id"]: p for p in await _sales(client, admin_headers)}
    assert set(principals) == {"003A", "003B"}
    assert principals["003B"]["first_name"] == "Grace"
    assert all(p["is_active"] is False for p in principals.values())
    assert all(p["username"] is None for p in principals.values())
    assert all(p["last_synced_at"] for p in principals.values())


async def test_second_sync_is_idempotent(
    client: AsyncClient, admin_headers: dict[str, str], fake_crm: FakeCrm
) -> None:
    """Re-running against unchanged CRM data changes nothing."""
    fake_crm.records = [contact("003A"), contact("003B")]
    await _sync(client, admin_headers)
    before = await _sales(client, admin_headers)
    summary = await _sync(client, admin_headers)
    assert summary["unchanged"] == 2
    assert summary["inserted"] == summary["updated"] == 0
    assert await _sales(client, admin_headers) == before


async def test_sync_updates_changed_fields_only(
    client: AsyncClient, admin_headers: dict[str, str], fake_crm: FakeCrm
) -> None:
    fake_crm.records = [contact("003A"), contact("003B")]
    await _sync(client, admin_headers)
    fake_crm.records = [contact("003A", Email="new@example.com"), contact("003B")]
    summary = await _sync(client, admin_headers)
    assert summary["updated"] == 1
    assert summary["unchanged"] == 1
    principals = {p["external_id"]: p for p in await _sales(client, admin_headers)}
    assert principals["003A"]["email"] == "new@example.com"


async def test_sync_preserves_local_fields(
    client: AsyncClient,
    admin_headers: dict[str, str],
    fake_crm: FakeCrm,
    sales_principal: dict[str, Any],
) -> None:
    """CRM changes never touch activation, username or the live session."""
    fake_crm.records = [contact("003SALES0001", LastName="Byron")]
    summary = await _sync(client, admin_headers)
    assert summary["updated"] == 1
    me = await client.get("/api/v1/auth/me", headers=sales_principal["headers"])
    assert me.status_code == 200
    data = me.json()
    assert data["last_name"] == "Byron"
    assert data["is_active"] is True
    assert data["username"] == sales_principal["username"]


async def test_sync_skips_bad_records_and_counts_them(
    client: AsyncClient, admin_headers: dict[str, str], fake_crm: FakeCrm
) -> None:
    fake_crm.records = [contact("003A"), {"FirstName": "No id"}, "not-an-object"]
    summary = await _sync(client, admin_headers)
    assert summary["fetched"] == 3
    assert summary["inserted"] == 1
    assert summary["skipped"] == 2


async def test_sync_with_no_eligible_records(
    client: AsyncClient, admin_headers: dict[str, str], fake_crm: FakeCrm
) -> None:
    summary = await _sync(client, admin_headers)
    assert summary["fetched"] == 0


async def test_sync_retries_once_after_crm_401(
    client: AsyncClient, admin_headers: dict[str, str], fake_crm: FakeCrm
) -> None:
    """A rejected cached token is refreshed once and the query retried."""
    fake_crm.records = [contact("003A")]
    await _sync(client, admin_headers)
    fake_crm.rejected_tokens.add("token-1")
    summary = await _sync(client, admin_headers)
    assert summary["unchanged"] == 1
    assert fake_crm.exchange_calls == 2
    assert fake_crm.fetch_tokens == ["token-1", "token-1", "token-2"]


async def test_sync_fails_with_502_when_fresh_token_also_rejected(
    client: AsyncClient, admin_headers: dict[str, str], fake_crm: FakeCrm
) -> None:
    fake_crm.rejected_tokens.update({"token-1", "token-2"})
    response = await client.post("/api/v1/sync", headers=admin_headers)
    assert response.status_code == 502
    assert response.json()["error"] == "EXTERNAL_AUTH_FAILURE"
    assert fake_crm.exchange_calls == 2


async def test_sync_exchange_failure_returns_502(
    client: AsyncClient, admin_headers: dict[str, str], fake_crm: FakeCrm
) -> None:
    fake_crm.exchange_error = ExternalAuthFailure(
        "token endpoint rejected the request", status_code=400
    )
    response = await client.post("/api/v1/sync", headers=admin_headers)
    assert response.status_code == 502
    body = response.json()
    assert body["error"] == "EXTERNAL_AUTH_FAILURE"
    assert body["details"]["status_code"] == 400


async def test_sync_fetch_failure_writes_nothing(
    client: AsyncClient, admin_headers: dict[str, str], fake_crm: FakeCrm
) -> None:
    fake_crm.records = [contact("003A")]
    fake_crm.fetch_error = ExternalFetchFailure("timeout")
    response = await client.post("/api/v1/sync", headers=admin_headers)
    assert response.status_code == 502
    assert response.json()["error"] == "EXTERNAL_FETCH_FAILURE"
    assert await _sales(client, admin_headers) == []


async def test_sync_with_startup_credential_cache_on_sqlite(
    client: AsyncClient,
    admin_headers: dict[str, str],
    fake_crm: FakeCrm,
    monkeypatch,
) -> None:
    """The credential cache built at startup from default settings works on SQLite."""
    from app.core.config import Settings
    from app.core.lifespan import build_credential_cache
    from app.infrastructure.persistence.repositories import InMemoryCredentialStore
    from app.main import app

    monkeypatch.delenv("CREDENTIAL_STORE", raising=False)
    settings = Settings(_env_file=None)
    credential_cache = build_credential_cache(settings, fake_crm)
    assert isinstance(credential_cache._store, InMemoryCredentialStore)
    app.state.credential_cache = credential_cache

    fake_crm.records = [contact("003A")]
    summary = await _sync(client, admin_headers)
    assert (summary["fetched"], summary["inserted"]) == (1, 1)
    assert fake_crm.exchange_calls == 1
