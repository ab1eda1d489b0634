"""DTOs for principal and session use cases (no dependency on ORM)."""

from dataclasses import dataclass
from datetime import datetime

from app.domain.enums import Role, SessionStatus


@dataclass(frozen=True)
class PrincipalResult:
    """Principal read-model. No password or session hash."""

    id: str
    external_id: str | None
    first_name: str | None
    last_name: str | None
    email: str | None
    phone: str | None
    role: Role
    is_active: bool
    username: str | None
    last_synced_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class IssuedSession:
    """Raw session token handed to the client once, with its absolute expiry."""

    token: str
    expires_at: datetime

    def __repr__(self) -> str:
        return f"IssuedSession(expires_at={self.expires_at.isoformat()!r})"


@dataclass(frozen=True)
class SessionLookup:
    """Result of validating a session token. principal is set only when VALID."""

    status: SessionStatus
    principal: PrincipalResult | None = None


@dataclass(frozen=True)
class LoginResult:
    """Authenticated principal and the session issued for it."""

    principal: PrincipalResult
    session: IssuedSession
