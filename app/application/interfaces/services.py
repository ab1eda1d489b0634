"""Service interfaces (ports) for the application layer.

Protocols for cache, CRM collaborators and password hashing (DIP).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from app.domain.value_objects import ExternalCredential


class ICacheService(Protocol):
    """Minimal cache protocol for principal read-model caching (DIP)."""

    def is_available(self) -> bool:
        """Return True if cache is connected."""

    async def get(self, key: str) -> Any:
        """Return cached value or None."""

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store value with TTL. Returns True on success."""

    async def delete(self, *keys: str) -> bool:
        """Delete one or more keys. Returns True on success."""


class ICredentialExchanger(Protocol):
    """Performs the CRM OAuth credential exchange."""

    async def exchange_credentials(self) -> tuple[str, str]:
        """Return (access_token, instance_url).

        Raises:
            ExternalAuthFailure: On transport error, non-200, or incomplete payload.
        """


class IRecordSource(Protocol):
    """Fetches the CRM's current set of sync-eligible records."""

    async def fetch_eligible(self, credential: ExternalCredential) -> list[Any]:
        """Return raw CRM records (the CRM applies the eligibility filter).

        Raises:
            ExternalAuthorizationRejected: CRM answered 401 for this token.
            ExternalFetchFailure: Any other failure or a payload without records.
        """


class IPasswordHasher(Protocol):
    """Password hashing provided via DI (no direct infra imports in services)."""

    def hash_password(self, password: str) -> str:
        """Return a hash suitable for storage."""

    def verify_password(self, plain_password: str, hashed_password: str | None) -> bool:
        """Return True if plain_password matches hashed_password."""
