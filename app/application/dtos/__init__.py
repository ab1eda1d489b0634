"""Application DTOs: read-models and results passed between layers."""

from app.application.dtos.principal import (
    IssuedSession,
    LoginResult,
    PrincipalResult,
    SessionLookup,
)
from app.application.dtos.sync import SyncSummary

__all__ = [
    "IssuedSession",
    "LoginResult",
    "PrincipalResult",
    "SessionLookup",
    "SyncSummary",
]
