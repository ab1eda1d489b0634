"""Persistence models: ORM entities and mixins."""

from app.infrastructure.persistence.models.external_credential import (
    ExternalCredentialRecord,
)
from app.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin
from app.infrastructure.persistence.models.principal import Principal

__all__ = [
    "CuidMixin",
    "ExternalCredentialRecord",
    "Principal",
    "TimestampMixin",
]
