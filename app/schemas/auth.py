"""Auth API schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.core.constants import MIN_PASSWORD_LENGTH
from app.domain.enums import Role


class LoginRequest(BaseModel):
    """Request body for login. Wrong credentials are a 401, not a validation error."""

    username: str = Field(..., min_length=1, max_length=128)
    password: str = Field(..., min_length=1, max_length=256)


class LoginResponse(BaseModel):
    """Session issued by login. Send session_token as Bearer or X-Session-Token."""

    role: Role
    session_token: str
    expires_at: datetime
    token_type: str = "bearer"


class ChangePasswordRequest(BaseModel):
    """Request body for PUT /auth/me/password."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(
        ...,
        min_length=MIN_PASSWORD_LENGTH,
        description=f"New password (min {MIN_PASSWORD_LENGTH} characters)",
    )
