"""Encryption at rest for the cached CRM access token (Fernet)."""

import base64

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from app.core.config import Settings, get_settings

DECRYPTION_ERROR_MSG = "Failed to decrypt credential - invalid or corrupted data"


class CredentialEncryptor:
    """Encrypt/decrypt secrets using Fernet (key derived from app secret)."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._fernet = Fernet(self._get_encryption_key(settings or get_settings()))

    @staticmethod
    def _get_encryption_key(settings: Settings) -> bytes:
        """Derive 32-byte key from secret_key + encryption_salt via PBKDF2-HMAC-SHA256."""
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=settings.encryption_salt.get_secret_value().encode(),
            iterations=100_000,
        )
        derived = kdf.derive(settings.secret_key.get_secret_value().encode())
        return base64.urlsafe_b64encode(derived)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a string to a token safe for storage."""
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, encrypted_str: str) -> str:
        """Decrypt a stored token back to its plaintext.

        Raises:
            ValueError: If the token is invalid or was encrypted with another key.
        """
        try:
            return self._fernet.decrypt(encrypted_str.encode()).decode()
        except InvalidToken as e:
            raise ValueError(DECRYPTION_ERROR_MSG) from e
