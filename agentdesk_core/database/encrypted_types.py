"""
Encrypted Database Field Types
==============================

SQLAlchemy TypeDecorator for transparent field-level encryption of provider
credentials (integration API keys, telephony auth tokens, SIP passwords).

Values are encrypted with AES-256-GCM; the stored format is
``base64(nonce + ciphertext + tag)``.

Usage:
    from agentdesk_core.database.encrypted_types import EncryptedString

    class Integration(Base):
        api_key = mapped_column(EncryptedString(255))
"""

import base64
import binascii
import hashlib
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from sqlalchemy import String, TypeDecorator
from sqlalchemy.engine import Dialect

import structlog

logger = structlog.get_logger(__name__)

_NONCE_SIZE = 12

_ENCRYPTION_KEY: Optional[bytes] = None


def _get_encryption_key() -> bytes:
    """Get the encryption key from the environment.

    Returns:
        32-byte encryption key for AES-256

    Raises:
        ValueError: If FIELD_ENCRYPTION_KEY is missing in production or malformed
    """
    global _ENCRYPTION_KEY
    if _ENCRYPTION_KEY is None:
        key_hex = os.getenv("FIELD_ENCRYPTION_KEY")
        if not key_hex:
            env = os.getenv("ENVIRONMENT", "development").lower()
            if env in ("production", "prod", "staging"):
                raise ValueError(
                    "FIELD_ENCRYPTION_KEY must be set in production. "
                    "Generate a 64-character hex key with secrets.token_hex(32)."
                )
            logger.warning(
                "development_encryption_key_in_use",
                hint="Set FIELD_ENCRYPTION_KEY outside development",
            )
            _ENCRYPTION_KEY = hashlib.sha256(b"agentdesk_dev_encryption_key").digest()
        else:
            if len(key_hex) != 64:
                raise ValueError(
                    "FIELD_ENCRYPTION_KEY must be 64 hex characters (32 bytes)"
                )
            _ENCRYPTION_KEY = bytes.fromhex(key_hex)
    return _ENCRYPTION_KEY


def reset_encryption_key() -> None:
    """Forget the cached key so the next access re-reads the environment."""
    global _ENCRYPTION_KEY
    _ENCRYPTION_KEY = None


class EncryptedString(TypeDecorator):
    """SQLAlchemy type for encrypted string fields.

    Encrypts on write and decrypts on read. A value that fails
    authentication on read (wrong key, tampered row) comes back as None
    rather than as ciphertext.

    Args:
        length: Maximum length of the plaintext
    """

    impl = String
    cache_ok = True

    def __init__(self, length: int = 255):
        # nonce(12) + ciphertext + tag(16), then base64
        encrypted_length = int(length * 1.5 + 50)
        super().__init__(length=encrypted_length)
        self._plaintext_length = length

    def process_bind_param(
        self, value: Optional[str], dialect: Dialect
    ) -> Optional[str]:
        if value is None:
            return None

        nonce = os.urandom(_NONCE_SIZE)
        ciphertext = AESGCM(_get_encryption_key()).encrypt(
            nonce,
            value.encode("utf-8"),
            None,
        )
        return base64.b64encode(nonce + ciphertext).decode("ascii")

    def process_result_value(
        self, value: Optional[str], dialect: Dialect
    ) -> Optional[str]:
        if value is None:
            return None

        cipher = AESGCM(_get_encryption_key())
        try:
            encrypted_blob = base64.b64decode(value.encode("ascii"), validate=True)
            nonce = encrypted_blob[:_NONCE_SIZE]
            ciphertext = encrypted_blob[_NONCE_SIZE:]
            plaintext = cipher.decrypt(nonce, ciphertext, None)
        except (binascii.Error, ValueError, InvalidTag):
            logger.error("field_decryption_failed")
            return None
        return plaintext.decode("utf-8")


def encrypt_value(value: str) -> str:
    """Encrypt a string value outside of the ORM."""
    return EncryptedString().process_bind_param(value, None) or ""


def decrypt_value(encrypted: str) -> Optional[str]:
    """Decrypt a value produced by :func:`encrypt_value`."""
    return EncryptedString().process_result_value(encrypted, None)


def mask_secret(value: Optional[str], visible: int = 4) -> Optional[str]:
    """Mask all but the last few characters of a secret for display."""
    if not value:
        return None
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]


__all__ = [
    "EncryptedString",
    "encrypt_value",
    "decrypt_value",
    "mask_secret",
    "reset_encryption_key",
]
