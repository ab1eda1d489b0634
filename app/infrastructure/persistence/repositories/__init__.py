"""Persistence repositories. Re-exports for dependency injection."""

from app.infrastructure.persistence.repositories.base import BaseRepository
from app.infrastructure.persistence.repositories.credential_store import (
    InMemoryCredentialStore,
    SqlCredentialStore,
)
from app.infrastructure.persistence.repositories.principal_repo import (
    PrincipalRepository,
)
from app.infrastructure.persistence.repositories.session_store import SessionStore

__all__ = [
    "BaseRepository",
    "InMemoryCredentialStore",
    "PrincipalRepository",
    "SessionStore",
    "SqlCredentialStore",
]
