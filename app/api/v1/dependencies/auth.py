"""Access control dependencies (composition root).

Every protected route depends on get_current_principal or require_role.
The session token is read from Authorization: Bearer or the configured
session header.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.api.v1.dependencies.db import (
    get_password_hasher,
    get_principal_repo,
    get_session_store,
)
from app.application.dtos.principal import PrincipalResult
from app.application.services.access_control import AccessControlGate
from app.application.services.auth_service import AuthService
from app.application.services.principal_service import PrincipalService
from app.core.config import get_settings
from app.domain.enums import Role
from app.infrastructure.persistence.repositories import (
    PrincipalRepository,
    SessionStore,
)
from app.infrastructure.security.password import BcryptPasswordHasher
from app.shared.context import set_current_principal

_http_bearer = HTTPBearer(auto_error=False)


def get_session_token(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
) -> str | None:
    """Return the presented session token, Bearer first, or None."""
    if credentials and credentials.credentials:
        return credentials.credentials
    header_value = request.headers.get(get_settings().session_token_header)
    return header_value.strip() if header_value and header_value.strip() else None


def get_access_gate(
    session_store: Annotated[SessionStore, Depends(get_session_store)],
) -> AccessControlGate:
    return AccessControlGate(session_store)


async def get_current_principal(
    token: Annotated[str | None, Depends(get_session_token)],
    gate: Annotated[AccessControlGate, Depends(get_access_gate)],
) -> PrincipalResult:
    """Return the authenticated principal; 401 if the token is missing, unknown or expired."""
    principal = await gate.authenticate(token)
    set_current_principal(principal.id)
    return principal


def require_role(role: Role) -> Callable[..., Awaitable[PrincipalResult]]:
    """Dependency factory: authenticated principal with exactly role, else 403."""

    async def _require(
        principal: Annotated[PrincipalResult, Depends(get_current_principal)],
    ) -> PrincipalResult:
        AccessControlGate.authorize(principal, role)
        return principal

    return _require


require_admin = require_role(Role.ADMIN)


def get_auth_service(
    principal_repo: Annotated[PrincipalRepository, Depends(get_principal_repo)],
    session_store: Annotated[SessionStore, Depends(get_session_store)],
    hasher: Annotated[BcryptPasswordHasher, Depends(get_password_hasher)],
) -> AuthService:
    """Login/logout service; admin credentials come from settings."""
    settings = get_settings()
    return AuthService(
        principal_repo,
        session_store,
        hasher,
        admin_username=settings.admin_username,
        admin_password=settings.admin_password.get_secret_value(),
        admin_email=settings.admin_email,
    )


def get_principal_service(
    principal_repo: Annotated[PrincipalRepository, Depends(get_principal_repo)],
    session_store: Annotated[SessionStore, Depends(get_session_store)],
    hasher: Annotated[BcryptPasswordHasher, Depends(get_password_hasher)],
) -> PrincipalService:
    return PrincipalService(principal_repo, session_store, hasher)
