"""Authentication service: username/password login and logout."""

from __future__ import annotations

import asyncio

from app.application.dtos.principal import LoginResult, PrincipalResult
from app.application.interfaces.repositories import IPrincipalRepository, ISessionStore
from app.application.interfaces.services import IPasswordHasher
from app.domain.exceptions import (
    PrincipalAlreadyExistsException,
    UnauthenticatedException,
)
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"

# Lazy dummy hash for constant-time comparison when the username is unknown.
# Computed on first use in a thread to avoid blocking the event loop.
_dummy_hash_cache: str | None = None


class AuthService:
    """Login and logout.

    The administrator is provisioned from configuration on the first
    admin login when no admin principal exists yet.
    """

    def __init__(
        self,
        principal_repo: IPrincipalRepository,
        session_store: ISessionStore,
        hasher: IPasswordHasher,
        admin_username: str,
        admin_password: str,
        admin_email: str | None = None,
    ) -> None:
        self._principals = principal_repo
        self._sessions = session_store
        self._hasher = hasher
        self._admin_username = admin_username
        self._admin_password = admin_password
        self._admin_email = admin_email

    async def _dummy_hash(self) -> str:
        global _dummy_hash_cache
        if _dummy_hash_cache is None:
            _dummy_hash_cache = await asyncio.to_thread(
                self._hasher.hash_password, "not-a-real-password"
            )
        return _dummy_hash_cache

    async def _provision_admin(self) -> tuple[PrincipalResult, str | None] | None:
        if await self._principals.get_admin() is not None:
            return None
        hashed = await asyncio.to_thread(self._hasher.hash_password, self._admin_password)
        try:
            admin = await self._principals.create_admin(
                self._admin_username, hashed, email=self._admin_email
            )
        except PrincipalAlreadyExistsException:
            logger.warning(
                "Admin username %r is taken by another principal", self._admin_username
            )
            return None
        logger.info("Provisioned admin principal %s", admin.id)
        return admin, hashed

    async def login(self, username: str, password: str) -> LoginResult:
        """Verify credentials and issue a session.

        Raises:
            UnauthenticatedException: Unknown user, wrong password, no password
                set, or inactive principal (one message for all).
        """
        record = await self._principals.get_login_record(username)
        if record is None and username == self._admin_username:
            record = await self._provision_admin()
        principal, hashed = record if record else (None, None)
        if hashed is None:
            await asyncio.to_thread(
                self._hasher.verify_password, password, await self._dummy_hash()
            )
            raise UnauthenticatedException(INVALID_CREDENTIALS)
        if not await asyncio.to_thread(self._hasher.verify_password, password, hashed):
            raise UnauthenticatedException(INVALID_CREDENTIALS)
        assert principal is not None
        if not principal.is_active:
            raise UnauthenticatedException(INVALID_CREDENTIALS)
        session = await self._sessions.issue(principal.id)
        logger.info("Login succeeded for principal %s (%s)", principal.id, principal.role.value)
        return LoginResult(principal=principal, session=session)

    async def logout(self, token: str | None) -> None:
        """Revoke the presented token. Unknown or already revoked tokens are a no-op."""
        await self._sessions.revoke(token)
