"""Password hashing and verification backed by bcrypt."""

import bcrypt

from ..config import settings
from ..constants import BCRYPT_MAX_PASSWORD_BYTES


def _encode(password: str) -> bytes:
    # bcrypt ignores (newer releases reject) anything past 72 bytes
    return password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a password for storage.

    Args:
        password: Plaintext password
        rounds: bcrypt cost factor, defaults to ``settings.bcrypt_rounds``

    Returns:
        The bcrypt hash as text
    """
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def check_password(password_hash: str, password: str) -> bool:
    """Verify a plaintext password against a stored bcrypt hash.

    Comparison is constant time. A malformed stored hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except ValueError:
        return False
