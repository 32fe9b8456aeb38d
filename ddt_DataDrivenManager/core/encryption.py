# ddt_DataDrivenManager/core/encryption.py
"""Reversible field encryption and masking for sensitive test data.

The scheme is deliberately light: values are stored as base64 of
``<text>:<key>`` so exported fixtures stay readable by the loaders while
secrets do not appear in plain text. Decryption checks the key suffix.
"""
from __future__ import annotations
import base64
import binascii
import hashlib
import logging
import os
import secrets
from typing import Optional

from .errors import EncryptionError

_LOG = logging.getLogger(__name__)

DEFAULT_KEY_ENV = "ENCRYPTION_KEY"
_FALLBACK_KEY = "test-key-for-data-encryption"


class DataEncryption:
    def __init__(self, key: Optional[str] = None, key_env: str = DEFAULT_KEY_ENV):
        self._key = key or os.environ.get(key_env) or _FALLBACK_KEY
        _LOG.debug("DataEncryption initialized (key from %s)",
                   "argument" if key else ("env" if os.environ.get(key_env) else "default"))

    def encrypt(self, text: str) -> str:
        if not text or not isinstance(text, str):
            raise EncryptionError("Text to encrypt must be a non-empty string")
        encoded = base64.b64encode(f"{text}:{self._key}".encode("utf-8")).decode("ascii")
        _LOG.debug("encrypted text of length %d", len(text))
        return encoded

    def decrypt(self, encrypted: str) -> str:
        if not encrypted or not isinstance(encrypted, str):
            raise EncryptionError("Encrypted text must be a non-empty string")
        try:
            decoded = base64.b64decode(encrypted.encode("ascii"), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeError, ValueError) as e:
            raise EncryptionError(f"Decryption failed: {e}") from e
        text, sep, key = decoded.rpartition(":")
        if not sep or key != self._key:
            raise EncryptionError("Decryption failed: invalid encrypted text or wrong key")
        return text

    def is_encrypted(self, text: str) -> bool:
        if not text or not isinstance(text, str):
            return False
        try:
            decoded = base64.b64decode(text.encode("ascii"), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeError, ValueError):
            return False
        return ":" in decoded

    @staticmethod
    def hash(text: str) -> str:
        """SHA-256 hex digest."""
        return hashlib.sha256(text.encode("utf-8")).hexdigest()

    @staticmethod
    def generate_random_string(length: int = 32) -> str:
        return secrets.token_hex((length + 1) // 2)[:length]

    @staticmethod
    def mask_sensitive_data(text: Optional[str], visible_chars: int = 3) -> str:
        """Keep ``visible_chars`` at both ends, star out the middle."""
        if not text or len(text) <= visible_chars * 2:
            return "*" * (len(text) if text else 8)
        mask_len = max(3, len(text) - visible_chars * 2)
        return f"{text[:visible_chars]}{'*' * mask_len}{text[-visible_chars:]}"
