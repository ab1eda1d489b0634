"""Domain layer: value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.enums import MergeOutcome, Role, SessionStatus
from app.domain.exceptions import (
    ExternalAuthFailure,
    ExternalAuthorizationRejected,
    ExternalFetchFailure,
    ForbiddenException,
    PersistenceFailure,
    PrincipalAlreadyExistsException,
    ResourceNotFoundException,
    SfdcSyncException,
    UnauthenticatedException,
    ValidationException,
)
from app.domain.value_objects import ExternalCredential, SyncRecord

__all__ = [
    # Enums
    "MergeOutcome",
    "Role",
    "SessionStatus",
    # Exceptions
    "ExternalAuthFailure",
    "ExternalAuthorizationRejected",
    "ExternalFetchFailure",
    "ForbiddenException",
    "PersistenceFailure",
    "PrincipalAlreadyExistsException",
    "ResourceNotFoundException",
    "SfdcSyncException",
    "UnauthenticatedException",
    "ValidationException",
    # Value objects
    "ExternalCredential",
    "SyncRecord",
]
