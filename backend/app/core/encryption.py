"""Symmetric encryption for tenant API keys stored at rest.

The secret comes from the ``ENCRYPTION_KEY`` environment variable and is
read on every call. Fernet is used with a key derived from the SHA-256 of
that secret, so the same plaintext yields a different token each time.
"""

import base64
import hashlib
import logging
import os

from cryptography.fernet import Fernet, InvalidToken

from backend.app.core.exceptions import EncryptionError

logger = logging.getLogger(__name__)


def _get_fernet() -> Fernet:
    secret = os.getenv("ENCRYPTION_KEY")
    if not secret:
        raise EncryptionError("ENCRYPTION_KEY environment variable is not set")
    key = base64.urlsafe_b64encode(hashlib.sha256(secret.encode("utf-8")).digest())
    return Fernet(key)


def encrypt(plaintext: str) -> str:
    fernet = _get_fernet()
    return fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")


def decrypt(ciphertext: str) -> str:
    fernet = _get_fernet()
    try:
        plaintext = fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")
    except (InvalidToken, UnicodeError) as exc:
        logger.error("Decryption failed: stored value is not a valid token")
        raise EncryptionError("Failed to decrypt data") from exc
    if not plaintext:
        logger.error("Decryption resulted in an empty string")
        raise EncryptionError("Failed to decrypt data")
    return plaintext
