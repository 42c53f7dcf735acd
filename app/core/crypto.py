"""
Helpers for encrypting sensitive strings at rest.

Used for device push tokens, which must be readable by the server (to send
notifications) but should not sit in the database in clear text.

The key comes from settings.FIELD_ENCRYPTION_KEY (a urlsafe base64 Fernet
key). When it is not configured a key is derived from SECRET_KEY so local
development works without extra setup.
"""

from __future__ import annotations

import base64
import hashlib
import logging
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken
from django.conf import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def _fernet_for(key: str) -> Fernet:
    return Fernet(key.encode("utf-8"))


def _get_fernet() -> Fernet:
    key = getattr(settings, "FIELD_ENCRYPTION_KEY", "") or ""
    if not key:
        digest = hashlib.sha256(settings.SECRET_KEY.encode("utf-8")).digest()
        key = base64.urlsafe_b64encode(digest).decode("utf-8")
    return _fernet_for(key)


def encrypt_value(value: str) -> str:
    """Encrypt a string; empty input stays empty."""
    if not value:
        return ""
    return _get_fernet().encrypt(value.encode("utf-8")).decode("utf-8")


def decrypt_value(token: str) -> str | None:
    """
    Decrypt a value produced by encrypt_value.

    Returns None when the token cannot be decrypted (rotated key or
    corrupted value) so callers can treat it as "no token".
    """
    if not token:
        return None
    try:
        return _get_fernet().decrypt(token.encode("utf-8")).decode("utf-8")
    except InvalidToken:
        logger.warning("Could not decrypt stored value; treating it as missing")
        return None
