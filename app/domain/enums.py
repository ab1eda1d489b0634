"""Domain enumerations for the sync service.

Enums represent fixed sets of domain values (e.g. principal role).
"""

from enum import Enum


class Role(str, Enum):
    """Principal role. Mutually exclusive; exactly one admin principal is expected."""

    ADMIN = "admin"
    SALES = "sales"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid role values as strings.

        Returns:
            List of enum value strings (e.g. for validation or serialization).
        """
        return [role.value for role in cls]


class SessionStatus(str, Enum):
    """Outcome of a session token lookup."""

    VALID = "valid"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"


class MergeOutcome(str, Enum):
    """Result of merging one external record into the principal table."""

    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
