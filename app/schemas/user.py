"""Principal (user) API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import MIN_PASSWORD_LENGTH
from app.domain.enums import Role


class PrincipalResponse(BaseModel):
    """Principal profile (no password, no session)."""

    model_config = ConfigDict(from_attributes=True)

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


class ActivationRequest(BaseModel):
    """Request body for PATCH /users/{id}/activation."""

    is_active: bool


class PasswordResetRequest(BaseModel):
    """Request body for POST /users/{id}/password (admin).

    username is required the first time a synced principal gets credentials.
    """

    password: str = Field(
        ...,
        min_length=MIN_PASSWORD_LENGTH,
        description=f"Password (min {MIN_PASSWORD_LENGTH} characters)",
    )
    username: str | None = Field(default=None, min_length=1, max_length=128)
