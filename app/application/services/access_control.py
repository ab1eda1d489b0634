"""Access control gate: session token -> principal, then role check."""

from __future__ import annotations

from app.application.dtos.principal import PrincipalResult
from app.application.interfaces.repositories import ISessionStore
from app.domain.enums import Role, SessionStatus
from app.domain.exceptions import ForbiddenException, UnauthenticatedException
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class AccessControlGate:
    """Resolve a presented session token before any protected operation runs."""

    def __init__(self, session_store: ISessionStore) -> None:
        self._sessions = session_store

    async def authenticate(self, token: str | None) -> PrincipalResult:
        """Return the principal holding token.

        Unknown, expired and deactivated all raise the same error.

        Raises:
            UnauthenticatedException: Token missing, unknown, expired, or principal inactive.
            PersistenceFailure: Session store unavailable.
        """
        lookup = await self._sessions.validate(token)
        if lookup.status is not SessionStatus.VALID or lookup.principal is None:
            logger.debug("Session rejected: %s", lookup.status.value)
            raise UnauthenticatedException()
        if not lookup.principal.is_active:
            logger.debug("Session rejected: principal %s inactive", lookup.principal.id)
            raise UnauthenticatedException()
        return lookup.principal

    @staticmethod
    def authorize(principal: PrincipalResult, required_role: Role) -> None:
        """Raise ForbiddenException unless principal has required_role."""
        if principal.role != required_role:
            raise ForbiddenException(required_role=required_role.value)
