"""Symmetric encryption for stored OAuth tokens."""

import base64
import hashlib

from cryptography.fernet import Fernet

MIN_SECRET_LENGTH = 32


class TokenEncryptor:
    """Fernet encryption keyed by a server-side secret."""

    def __init__(self, secret: str) -> None:
        if len(secret) < MIN_SECRET_LENGTH:
            raise ValueError(
                f"Encryption secret must be at least {MIN_SECRET_LENGTH} characters"
            )
        key = base64.urlsafe_b64encode(hashlib.sha256(secret.encode()).digest())
        self._fernet = Fernet(key)

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        return self._fernet.decrypt(ciphertext.encode()).decode()
