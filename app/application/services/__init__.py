"""Application services: credential cache, access control, authentication, principal admin."""

from app.application.services.access_control import AccessControlGate
from app.application.services.auth_service import AuthService
from app.application.services.credential_cache import CredentialCache
from app.application.services.principal_service import PrincipalService

__all__ = [
    "AccessControlGate",
    "AuthService",
    "CredentialCache",
    "PrincipalService",
]
