"""Users API: list and read principals; admin activation and credential reset."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.v1.dependencies import (
    get_current_principal,
    get_principal_service,
    require_admin,
)
from app.application.dtos.principal import PrincipalResult
from app.application.services.principal_service import PrincipalService
from app.domain.enums import Role
from app.schemas.user import ActivationRequest, PasswordResetRequest, PrincipalResponse

router = APIRouter()


@router.get("", response_model=list[PrincipalResponse])
async def list_users(
    principal: Annotated[PrincipalResult, Depends(get_current_principal)],
    principal_service: Annotated[PrincipalService, Depends(get_principal_service)],
    role: Role | None = None,
    is_active: bool | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
):
    """List principals. Admin sees everyone (filterable); sales sees only itself."""
    principals = await principal_service.list_principals(
        principal, role=role, is_active=is_active, skip=skip, limit=limit
    )
    return [PrincipalResponse.model_validate(p) for p in principals]


@router.get("/{principal_id}", response_model=PrincipalResponse)
async def get_user(
    principal_id: str,
    principal: Annotated[PrincipalResult, Depends(get_current_principal)],
    principal_service: Annotated[PrincipalService, Depends(get_principal_service)],
):
    """Get a principal by id (admin, or the principal itself)."""
    target = await principal_service.get_principal(principal, principal_id)
    return PrincipalResponse.model_validate(target)


@router.patch("/{principal_id}/activation", response_model=PrincipalResponse)
async def set_user_activation(
    principal_id: str,
    body: ActivationRequest,
    _: Annotated[PrincipalResult, Depends(require_admin)],
    principal_service: Annotated[PrincipalService, Depends(get_principal_service)],
):
    """Activate or deactivate a principal. Deactivation ends its session."""
    updated = await principal_service.set_active(principal_id, body.is_active)
    return PrincipalResponse.model_validate(updated)


@router.post("/{principal_id}/password", response_model=PrincipalResponse)
async def reset_user_password(
    principal_id: str,
    body: PasswordResetRequest,
    _: Annotated[PrincipalResult, Depends(require_admin)],
    principal_service: Annotated[PrincipalService, Depends(get_principal_service)],
):
    """Set a principal's login credentials (admin only)."""
    updated = await principal_service.reset_password(
        principal_id, body.password, username=body.username
    )
    return PrincipalResponse.model_validate(updated)
