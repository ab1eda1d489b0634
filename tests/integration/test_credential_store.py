"""SqlCredentialStore integration tests: encrypted singleton row, atomic replace, mark_stale."""

from datetime import UTC, datetime

from sqlalchemy import select

from app.domain.value_objects import ExternalCredential
from app.infrastructure.persistence import database
from app.infrastructure.persistence.models import ExternalCredentialRecord
from app.infrastructure.persistence.repositories import SqlCredentialStore
from app.infrastructure.persistence.repositories.credential_store import (
    STALE_FETCHED_AT,
)
from app.infrastructure.security.encryption import CredentialEncryptor

FETCHED_AT = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _store(settings) -> SqlCredentialStore:
    return SqlCredentialStore(database.get_session_factory(), CredentialEncryptor(settings))


def _credential(token: str = "tok-1") -> ExternalCredential:
    return ExternalCredential(token, "https://crm.example.com", FETCHED_AT)


async def test_load_empty_returns_none(settings) -> None:
    assert await _store(settings).load() is None


async def test_save_then_load(settings) -> None:
    store = _store(settings)
    await store.save(_credential())
    loaded = await store.load()
    assert loaded == _credential()


async def test_token_is_encrypted_at_rest(settings) -> None:
    await _store(settings).save(_credential("plain-token"))
    async with database.get_session_factory()() as session:
        row = (await session.execute(select(ExternalCredentialRecord))).scalar_one()
    assert row.access_token != "plain-token"
    assert "plain-token" not in row.access_token


async def test_save_replaces_single_row(settings) -> None:
    store = _store(settings)
    await store.save(_credential("tok-1"))
    await store.save(_credential("tok-2"))
    async with database.get_session_factory()() as session:
        rows = (await session.execute(select(ExternalCredentialRecord))).scalars().all()
    assert len(rows) == 1
    assert (await store.load()).access_token == "tok-2"


async def test_mark_stale_only_for_current_token(settings) -> None:
    store = _store(settings)
    await store.save(_credential("tok-1"))
    assert await store.mark_stale("tok-other") is False
    assert (await store.load()).fetched_at == FETCHED_AT
    assert await store.mark_stale("tok-1") is True
    loaded = await store.load()
    assert loaded.access_token == "tok-1"
    assert loaded.fetched_at == STALE_FETCHED_AT


async def test_mark_stale_without_row(settings) -> None:
    assert await _store(settings).mark_stale("tok-1") is False
