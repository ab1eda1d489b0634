"""Principal ORM model: admin and sales identities, with the live session inline."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.enums import Role
from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class Principal(CuidMixin, TimestampMixin, Base):
    """Principal model. Table: principal.

    first_name, last_name, email and phone are owned by the CRM and
    refreshed by sync; role, is_active, username, hashed_password and the
    session columns are local-only and never written by sync.
    """

    __tablename__ = "principal"

    external_id: Mapped[str | None] = mapped_column(
        String, unique=True, nullable=True
    )
    first_name: Mapped[str | None] = mapped_column(String, nullable=True)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    role: Mapped[str] = mapped_column(
        String(16), nullable=False, default=Role.SALES.value
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    username: Mapped[str | None] = mapped_column(String, unique=True, nullable=True)
    hashed_password: Mapped[str | None] = mapped_column(String, nullable=True)
    # SHA-256 hex digest; the raw token is never stored
    session_token_hash: Mapped[str | None] = mapped_column(
        String(64), unique=True, nullable=True
    )
    session_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("ix_principal_role", "role"),
        Index("ix_principal_session_expires_at", "session_expires_at"),
    )
