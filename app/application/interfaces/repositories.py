"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs or domain types only; no infrastructure imports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from app.domain.enums import MergeOutcome, Role

if TYPE_CHECKING:
    from datetime import datetime

    from app.application.dtos.principal import (
        IssuedSession,
        PrincipalResult,
        SessionLookup,
    )
    from app.domain.value_objects import ExternalCredential, SyncRecord


class IPrincipalRepository(Protocol):
    """Protocol for the principal table (DIP)."""

    async def get_result(self, principal_id: str) -> PrincipalResult | None:
        """Return principal read-model by id (may be served from cache)."""

    async def get_admin(self) -> PrincipalResult | None:
        """Return the admin principal, if provisioned."""

    async def get_login_record(self, username: str) -> tuple[PrincipalResult, str | None] | None:
        """Return (principal, hashed_password) for a username, or None."""

    async def create_admin(
        self, username: str, hashed_password: str, email: str | None = None
    ) -> PrincipalResult:
        """Insert the admin principal (active, no external id)."""

    async def list_principals(
        self,
        role: Role | None = None,
        is_active: bool | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[PrincipalResult]:
        """Return principals (optionally filtered), newest first."""

    async def set_active(self, principal_id: str, is_active: bool) -> PrincipalResult | None:
        """Toggle activation; None if not found."""

    async def set_credentials(
        self, principal_id: str, hashed_password: str, username: str | None = None
    ) -> PrincipalResult | None:
        """Replace password hash and optionally the login username; None if not found."""

    async def upsert_from_sync(
        self, record: SyncRecord, synced_at: datetime | None = None
    ) -> tuple[MergeOutcome, str | None]:
        """Merge one external record keyed by external_id; return (outcome, principal_id).

        Raises:
            ValidationException: The record cannot be stored (caller skips it).
            PersistenceFailure: The store failed; the batch must abort.
        """

    async def invalidate_cached(self, principal_ids: list[str]) -> None:
        """Drop cached read-models for the given ids."""


class ISessionStore(Protocol):
    """Protocol for session issuance, validation and revocation (DIP)."""

    async def issue(self, principal_id: str) -> IssuedSession:
        """Issue a new token for principal, replacing any live one."""

    async def validate(self, token: str | None) -> SessionLookup:
        """Return VALID with principal, EXPIRED, or NOT_FOUND."""

    async def revoke(self, token: str | None) -> None:
        """Clear the session holding token; no-op when none does."""

    async def revoke_for_principal(self, principal_id: str) -> None:
        """Clear whatever session principal currently holds."""


class ICredentialStore(Protocol):
    """Protocol for the single persisted (or in-process) CRM credential (DIP)."""

    async def load(self) -> ExternalCredential | None:
        """Return the stored credential, or None."""

    async def save(self, credential: ExternalCredential) -> None:
        """Atomically replace token, instance URL and fetch time together."""

    async def mark_stale(self, access_token: str) -> bool:
        """Force the stored credential stale if it still holds access_token."""
