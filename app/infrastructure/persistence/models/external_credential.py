"""External CRM credential ORM model (singleton row)."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.constants import EXTERNAL_CREDENTIAL_ID
from app.infrastructure.persistence.database import Base


class ExternalCredentialRecord(Base):
    """Cached CRM bearer token. Table: external_credential.

    access_token is Fernet-encrypted. The token, instance_url and fetched_at
    are always written together by a single upsert.
    """

    __tablename__ = "external_credential"

    id: Mapped[str] = mapped_column(
        String, primary_key=True, default=EXTERNAL_CREDENTIAL_ID
    )
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    instance_url: Mapped[str] = mapped_column(String, nullable=False)
    fetched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
