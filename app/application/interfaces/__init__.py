"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from app.infrastructure or app.api.
"""

from app.application.interfaces.repositories import (
    ICredentialStore,
    IPrincipalRepository,
    ISessionStore,
)
from app.application.interfaces.services import (
    ICacheService,
    ICredentialExchanger,
    IPasswordHasher,
    IRecordSource,
)

__all__ = [
    "ICacheService",
    "ICredentialExchanger",
    "ICredentialStore",
    "IPasswordHasher",
    "IPrincipalRepository",
    "IRecordSource",
    "ISessionStore",
]
