"""Principal administration: role-shaped views and local-field mutations."""

from __future__ import annotations

import asyncio

from app.application.dtos.principal import PrincipalResult
from app.application.interfaces.repositories import IPrincipalRepository, ISessionStore
from app.application.interfaces.services import IPasswordHasher
from app.core.constants import MIN_PASSWORD_LENGTH
from app.domain.enums import Role
from app.domain.exceptions import (
    ForbiddenException,
    ResourceNotFoundException,
    ValidationException,
)
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def _check_password(password: str, field: str = "password") -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationException(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field=field
        )


class PrincipalService:
    """Views over the principal table and the admin-only mutations.

    Sync never writes the fields changed here (activation, credentials).
    """

    def __init__(
        self,
        principal_repo: IPrincipalRepository,
        session_store: ISessionStore,
        hasher: IPasswordHasher,
    ) -> None:
        self._principals = principal_repo
        self._sessions = session_store
        self._hasher = hasher

    async def _require(self, principal_id: str) -> PrincipalResult:
        principal = await self._principals.get_result(principal_id)
        if principal is None:
            raise ResourceNotFoundException("principal", principal_id)
        return principal

    async def list_principals(
        self,
        viewer: PrincipalResult,
        role: Role | None = None,
        is_active: bool | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[PrincipalResult]:
        """Admin sees every principal; anyone else sees only themselves."""
        if not viewer.is_admin:
            own = await self._principals.get_result(viewer.id)
            return [own] if own else []
        return await self._principals.list_principals(
            role=role, is_active=is_active, skip=skip, limit=limit
        )

    async def get_principal(
        self, viewer: PrincipalResult, principal_id: str
    ) -> PrincipalResult:
        if not viewer.is_admin and viewer.id != principal_id:
            raise ForbiddenException(required_role=Role.ADMIN.value)
        return await self._require(principal_id)

    async def set_active(self, principal_id: str, is_active: bool) -> PrincipalResult:
        """Toggle activation; deactivation also ends the principal's session.

        Raises:
            ResourceNotFoundException: Unknown principal.
            ValidationException: Attempt to deactivate the admin.
        """
        target = await self._require(principal_id)
        if target.is_admin and not is_active:
            raise ValidationException(
                "The admin principal cannot be deactivated", field="is_active"
            )
        updated = await self._principals.set_active(principal_id, is_active)
        if updated is None:
            raise ResourceNotFoundException("principal", principal_id)
        if not is_active:
            await self._sessions.revoke_for_principal(principal_id)
        logger.info(
            "Principal %s %s", principal_id, "activated" if is_active else "deactivated"
        )
        return updated

    async def reset_password(
        self, principal_id: str, password: str, username: str | None = None
    ) -> PrincipalResult:
        """Set login credentials for a principal and end its current session.

        Raises:
            ResourceNotFoundException: Unknown principal.
            ValidationException: Short password, or no username to log in with.
            PrincipalAlreadyExistsException: Username taken by another principal.
        """
        target = await self._require(principal_id)
        _check_password(password)
        if username is None and target.username is None:
            raise ValidationException(
                "A username is required before a password can be set", field="username"
            )
        hashed = await asyncio.to_thread(self._hasher.hash_password, password)
        updated = await self._principals.set_credentials(
            principal_id, hashed, username=username
        )
        if updated is None:
            raise ResourceNotFoundException("principal", principal_id)
        await self._sessions.revoke_for_principal(principal_id)
        logger.info("Credentials reset for principal %s", principal_id)
        return updated

    async def change_own_password(
        self, principal: PrincipalResult, current_password: str, new_password: str
    ) -> PrincipalResult:
        """Change the caller's password after checking the current one."""
        _check_password(new_password, field="new_password")
        record = (
            await self._principals.get_login_record(principal.username)
            if principal.username
            else None
        )
        hashed = record[1] if record else None
        if not await asyncio.to_thread(
            self._hasher.verify_password, current_password, hashed
        ):
            raise ValidationException(
                "Current password is incorrect", field="current_password"
            )
        new_hash = await asyncio.to_thread(self._hasher.hash_password, new_password)
        updated = await self._principals.set_credentials(principal.id, new_hash)
        if updated is None:
            raise ResourceNotFoundException("principal", principal.id)
        return updated
