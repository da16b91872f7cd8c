"""Encryption of secret environment values.

Secret values are stored as ``crypto_<fernet token>``. The key is derived from
the project id, so every checkout of the same project can decrypt its own
``.user`` files while values copied between projects fail loudly.
"""
from __future__ import annotations

import base64
import hashlib
import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from ..config import get_config
from ..errors import DecryptionError

logger = logging.getLogger(__name__)


class LocalCrypto:
    """Symmetric encryption bound to one project."""

    def __init__(self, project_id: str, prefix: Optional[str] = None):
        if not project_id:
            raise ValueError("project_id is required to derive the encryption key")
        digest = hashlib.sha256(project_id.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))
        self.prefix = prefix or get_config().encrypted_prefix

    def is_encrypted(self, value: str) -> bool:
        return value.startswith(self.prefix)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt ``plaintext`` and tag it with the encrypted-value prefix."""
        token = self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")
        return self.prefix + token

    def decrypt(self, value: str, key: Optional[str] = None) -> str:
        """Decrypt a tagged value; untagged values are returned unchanged.

        Raises:
            DecryptionError: If the token is corrupt or was made for another project
        """
        if not self.is_encrypted(value):
            return value
        token = value[len(self.prefix):]
        try:
            return self._fernet.decrypt(token.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError, ValueError) as e:
            logger.debug(f"Decryption failed for {key or 'value'}: {e}")
            raise DecryptionError(key) from e
