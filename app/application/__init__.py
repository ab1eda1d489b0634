"""Application layer: interfaces, services, use cases.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (repositories, stores, CRM client).
"""

from app.application.interfaces import (
    ICacheService,
    ICredentialExchanger,
    ICredentialStore,
    IPasswordHasher,
    IPrincipalRepository,
    IRecordSource,
    ISessionStore,
)
from app.application.services import (
    AccessControlGate,
    AuthService,
    CredentialCache,
    PrincipalService,
)
from app.application.use_cases import ReconciliationEngine

__all__ = [
    "AccessControlGate",
    "AuthService",
    "CredentialCache",
    "ICacheService",
    "ICredentialExchanger",
    "ICredentialStore",
    "IPasswordHasher",
    "IPrincipalRepository",
    "IRecordSource",
    "ISessionStore",
    "PrincipalService",
    "ReconciliationEngine",
]
