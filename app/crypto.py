"""
Encryption of provider secrets and OAuth tokens at rest using Fernet.

client_secret in sso_provider and access/refresh tokens in access_token are
encrypted before being written and decrypted when read back. The key comes
from TOKEN_ENCRYPTION_KEY and is resolved on first use so tests can set it.
"""
import os
from functools import lru_cache

from cryptography.fernet import Fernet


@lru_cache(maxsize=1)
def get_fernet() -> Fernet:
    key = os.environ.get("TOKEN_ENCRYPTION_KEY")
    if not key:
        raise RuntimeError("TOKEN_ENCRYPTION_KEY environment variable is required")
    return Fernet(key.encode())


def encrypt(value: str | None) -> str | None:
    """Encrypt a secret for storage. None stays None (e.g. missing refresh_token)."""
    if value is None:
        return None
    return get_fernet().encrypt(value.encode()).decode()


def decrypt(value: str | None) -> str | None:
    if value is None:
        return None
    return get_fernet().decrypt(value.encode()).decode()
