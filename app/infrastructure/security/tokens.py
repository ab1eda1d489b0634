"""Opaque session tokens.

Tokens are random URL-safe strings handed to the client once; only their
SHA-256 hex digest is persisted, so a leaked table does not leak sessions.
"""

import hashlib
import secrets

# 32 random bytes -> 256 bits of entropy
SESSION_TOKEN_BYTES = 32


def generate_session_token() -> str:
    """Return a new random session token."""
    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)


def hash_session_token(token: str) -> str:
    """Return the 64-character hex digest stored for token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
