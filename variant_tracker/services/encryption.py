"""
Application-layer encryption for PHI columns (patient display names).

Fernet (AES-128-CBC + HMAC) keyed from PHI_ENCRYPTION_KEY. Without a key a
throwaway one is generated, so data written by one process cannot be read
by the next.
"""

import logging

from cryptography.fernet import Fernet, InvalidToken

from variant_tracker.config import settings

logger = logging.getLogger(__name__)


class EncryptionService:
    """Wraps Fernet symmetric encryption for PHI fields."""

    def __init__(self, key: str | bytes | None = None):
        raw_key = key or settings.PHI_ENCRYPTION_KEY
        if raw_key:
            self._fernet = Fernet(raw_key.encode() if isinstance(raw_key, str) else raw_key)
        else:
            logger.warning("PHI_ENCRYPTION_KEY not set; using an ephemeral key")
            self._fernet = Fernet(Fernet.generate_key())

    def encrypt(self, plaintext: str | None) -> str:
        """Encrypt a string and return base64-encoded ciphertext."""
        if not plaintext:
            return ""
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str | None) -> str:
        """Decrypt base64-encoded ciphertext back to plaintext."""
        if not ciphertext:
            return ""
        return self._fernet.decrypt(ciphertext.encode()).decode()

    def decrypt_or_none(self, ciphertext: str | None) -> str | None:
        """Like decrypt, but None for empty input or a token from another key."""
        if not ciphertext:
            return None
        try:
            return self.decrypt(ciphertext)
        except InvalidToken:
            logger.warning("Could not decrypt PHI value (key rotated or ephemeral key)")
            return None


encryption = EncryptionService()
