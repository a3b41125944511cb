"""Encryption of the OAuth token kept in the cookie session.

Flask signs its session cookie but does not encrypt it, so the access token
is sealed with Fernet before it is stored. The key is derived from the app's
``SECRET_KEY`` with PBKDF2.
"""

import base64
import json
import logging
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

logger = logging.getLogger(__name__)

ITERATIONS = 100000
KEY_LENGTH = 32


@lru_cache(maxsize=8)
def _derive_key(secret: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=ITERATIONS,
    )
    return base64.urlsafe_b64encode(kdf.derive(secret.encode()))


class TokenVault:
    def __init__(self, secret: str, salt: bytes):
        if not secret:
            raise ValueError("a secret is required to seal session tokens")
        self._fernet = Fernet(_derive_key(secret, salt))

    @classmethod
    def from_config(cls, config) -> "TokenVault":
        return cls(config["SECRET_KEY"], config["TOKEN_SALT"].encode())

    def seal(self, token: dict) -> str:
        return self._fernet.encrypt(json.dumps(token).encode()).decode()

    def unseal(self, sealed) -> dict | None:
        """The token dict, or None when ``sealed`` was not produced by this vault."""
        if not isinstance(sealed, str):
            return None
        try:
            data = self._fernet.decrypt(sealed.encode())
        except InvalidToken:
            logger.warning("Ignoring a session token that does not decrypt with the current key")
            return None
        return json.loads(data)
