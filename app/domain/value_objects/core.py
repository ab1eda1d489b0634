"""Domain value objects for the sync service.

Value objects are immutable types that represent domain concepts with
self-validation. They have no identity, only value.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from app.domain.exceptions import ValidationException

# External field name -> SyncRecord attribute
_EXTERNAL_FIELD_MAP: dict[str, str] = {
    "FirstName": "first_name",
    "LastName": "last_name",
    "Email": "email",
    "Phone": "phone",
}


def _clean(value: Any) -> str | None:
    """Strip strings and turn blanks into None; non-strings are stringified."""
    if value is None:
        return None
    text = value.strip() if isinstance(value, str) else str(value).strip()
    return text or None


@dataclass(frozen=True)
class SyncRecord:
    """One external contact record, keyed by the CRM's stable record id.

    external_id is the only join key between the CRM and the principal
    table; email and names can legitimately change upstream.
    """

    external_id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None

    def __post_init__(self) -> None:
        """Validate the join key.

        Raises:
            ValidationException: If external_id is empty.
        """
        if not self.external_id or not self.external_id.strip():
            raise ValidationException(
                "Sync record is missing its external id", field="Id"
            )

    @classmethod
    def from_external(cls, raw: Any) -> "SyncRecord":
        """Build from a CRM record dict (Id, FirstName, LastName, Email, Phone).

        Unknown keys (e.g. the CRM's 'attributes' envelope) are ignored.

        Raises:
            ValidationException: If raw is not an object or has no Id.
        """
        if not isinstance(raw, dict):
            raise ValidationException("Sync record must be an object")
        external_id = _clean(raw.get("Id"))
        if external_id is None:
            raise ValidationException(
                "Sync record is missing its external id", field="Id"
            )
        fields = {attr: _clean(raw.get(key)) for key, attr in _EXTERNAL_FIELD_MAP.items()}
        return cls(external_id=external_id, **fields)


@dataclass(frozen=True)
class ExternalCredential:
    """CRM bearer token plus the instance base URL it is valid for.

    fetched_at is written together with the token; the pair is only ever
    replaced as a whole.
    """

    access_token: str
    instance_url: str
    fetched_at: datetime

    def __post_init__(self) -> None:
        if not self.access_token:
            raise ValueError("access_token must be a non-empty string")
        if not self.instance_url:
            raise ValueError("instance_url must be a non-empty string")

    def is_fresh(self, now: datetime, window: timedelta) -> bool:
        """Return True while now - fetched_at < window."""
        return now - self.fetched_at < window

    def __repr__(self) -> str:
        return (
            f"ExternalCredential(instance_url={self.instance_url!r}, "
            f"fetched_at={self.fetched_at.isoformat()!r})"
        )
