"""Pydantic request/response schemas for the API."""

from app.schemas.auth import ChangePasswordRequest, LoginRequest, LoginResponse
from app.schemas.health import HealthResponse, ReadinessErrorResponse
from app.schemas.sync import SyncSummaryResponse
from app.schemas.user import ActivationRequest, PasswordResetRequest, PrincipalResponse

__all__ = [
    "ActivationRequest",
    "ChangePasswordRequest",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "PasswordResetRequest",
    "PrincipalResponse",
    "ReadinessErrorResponse",
    "SyncSummaryResponse",
]
