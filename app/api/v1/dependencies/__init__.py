"""API v1 dependencies (composition root).

Routes depend only on these; repositories, stores and services are
built here from infrastructure implementations.
"""

from app.api.v1.dependencies.auth import (
    get_access_gate,
    get_auth_service,
    get_current_principal,
    get_principal_service,
    get_session_token,
    require_admin,
    require_role,
)
from app.api.v1.dependencies.db import (
    get_cache,
    get_clock,
    get_password_hasher,
    get_principal_repo,
    get_session_store,
)
from app.api.v1.dependencies.sync import (
    get_credential_cache,
    get_reconciliation_engine,
    get_record_source,
)

__all__ = [
    "get_access_gate",
    "get_auth_service",
    "get_cache",
    "get_clock",
    "get_credential_cache",
    "get_current_principal",
    "get_password_hasher",
    "get_principal_repo",
    "get_principal_service",
    "get_reconciliation_engine",
    "get_record_source",
    "get_session_store",
    "get_session_token",
    "require_admin",
    "require_role",
]
