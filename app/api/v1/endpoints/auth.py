"""Auth API: login, logout, and the caller's own profile and password.

Uses only injected dependencies (get_auth_service, get_current_principal);
no manual repo construction.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from app.api.v1.dependencies import (
    get_auth_service,
    get_current_principal,
    get_principal_service,
    get_session_token,
)
from app.application.dtos.principal import PrincipalResult
from app.application.services.auth_service import AuthService
from app.application.services.principal_service import PrincipalService
from app.core.limiter import limit_auth
from app.schemas.auth import ChangePasswordRequest, LoginRequest, LoginResponse
from app.schemas.user import PrincipalResponse

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
@limit_auth
async def login(
    request: Request,
    body: LoginRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
):
    """Authenticate with username and password; return a fresh session token.

    Any failure is the same 401 "Invalid credentials". A new login replaces
    the principal's previous session.
    """
    result = await auth_service.login(body.username, body.password)
    return LoginResponse(
        role=result.principal.role,
        session_token=result.session.token,
        expires_at=result.session.expires_at,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: Annotated[str | None, Depends(get_session_token)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> Response:
    """Revoke the presented session token. Unknown or missing tokens are a no-op."""
    await auth_service.logout(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=PrincipalResponse)
async def get_me(
    principal: Annotated[PrincipalResult, Depends(get_current_principal)],
):
    """Return the authenticated principal's profile."""
    return PrincipalResponse.model_validate(principal)


@router.put("/me/password", response_model=PrincipalResponse)
async def change_my_password(
    body: ChangePasswordRequest,
    principal: Annotated[PrincipalResult, Depends(get_current_principal)],
    principal_service: Annotated[PrincipalService, Depends(get_principal_service)],
):
    """Change own password after verifying the current one. The session stays valid."""
    updated = await principal_service.change_own_password(
        principal, body.current_password, body.new_password
    )
    return PrincipalResponse.model_validate(updated)
