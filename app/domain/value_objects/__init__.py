"""Domain value objects and shared value types."""

from app.domain.value_objects.core import ExternalCredential, SyncRecord

__all__ = [
    "ExternalCredential",
    "SyncRecord",
]
