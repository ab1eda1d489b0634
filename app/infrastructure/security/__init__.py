"""Security: password hashing, session tokens, and credential encryption."""

from app.infrastructure.security.encryption import CredentialEncryptor
from app.infrastructure.security.password import (
    BcryptPasswordHasher,
    get_password_hash,
    verify_password,
)
from app.infrastructure.security.tokens import (
    generate_session_token,
    hash_session_token,
)

__all__ = [
    "BcryptPasswordHasher",
    "CredentialEncryptor",
    "generate_session_token",
    "get_password_hash",
    "hash_session_token",
    "verify_password",
]
