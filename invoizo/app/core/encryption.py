"""AES-256-GCM encryption for sensitive values stored at rest (bank account details).

Each ciphertext is ``base64(nonce || ciphertext || tag)`` with a fresh random
12-byte nonce, so encrypting the same plaintext twice yields different tokens.
"""

import base64
import binascii
import logging
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from invoizo.app.core.exceptions import EncryptionError, InvoiceValidationError
from invoizo.app.core.settings import get_settings

logger = logging.getLogger(__name__)

NONCE_LENGTH = 12
KEY_LENGTH = 32


def generate_key() -> str:
    """Return a new base64 encoded 256-bit key suitable for ``ENCRYPTION_KEY``."""
    return base64.b64encode(AESGCM.generate_key(bit_length=256)).decode("ascii")


class EncryptionService:
    def __init__(self, key: str):
        try:
            raw_key = base64.b64decode(key, validate=True)
        except (binascii.Error, ValueError, TypeError) as exc:
            raise EncryptionError("Encryption key must be base64 encoded") from exc
        if len(raw_key) != KEY_LENGTH:
            raise EncryptionError(f"Encryption key must decode to {KEY_LENGTH} bytes")
        self._aesgcm = AESGCM(raw_key)

    def encrypt(self, plaintext: Optional[str]) -> str:
        if not plaintext:
            raise InvoiceValidationError("Plain text cannot be null or empty")
        nonce = os.urandom(NONCE_LENGTH)
        ciphertext = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + ciphertext).decode("ascii")

    def decrypt(self, token: Optional[str]) -> str:
        if not token:
            raise InvoiceValidationError("Encrypted text cannot be null or empty")
        try:
            data = base64.b64decode(token, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise EncryptionError("Encrypted value is not valid base64") from exc
        if len(data) <= NONCE_LENGTH:
            raise EncryptionError("Encrypted value is too short")
        nonce, ciphertext = data[:NONCE_LENGTH], data[NONCE_LENGTH:]
        try:
            plaintext = self._aesgcm.decrypt(nonce, ciphertext, None)
        except InvalidTag as exc:
            logger.error("Decryption failed: authentication tag mismatch")
            raise EncryptionError("Failed to decrypt value") from exc
        return plaintext.decode("utf-8")


_encryption_service = None


def get_encryption_service() -> EncryptionService:
    global _encryption_service
    if _encryption_service is None:
        _encryption_service = EncryptionService(get_settings().ENCRYPTION_KEY)
    return _encryption_service
