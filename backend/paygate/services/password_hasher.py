"""
Password Hashing

bcrypt with a fixed cost factor. Digests embed their own salt and are
safe to store directly.
"""
import bcrypt

from ..config import settings
from ..exceptions import InvalidInputError

# bcrypt ignores everything past the first 72 bytes of input
BCRYPT_MAX_BYTES = 72


def hash_password(plain_password: str) -> str:
    """
    Hash a password for storage.

    Args:
        plain_password: Password as typed by the merchant

    Returns:
        bcrypt digest ($2b$<cost>$<salt+hash>)

    Raises:
        InvalidInputError: Password empty or longer than 72 bytes
    """
    if not plain_password:
        raise InvalidInputError("Password cannot be null or empty")

    password_bytes = plain_password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        raise InvalidInputError(f"Password cannot exceed {BCRYPT_MAX_BYTES} bytes")

    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a password against a stored digest.

    A mismatch is a normal False result. A stored digest bcrypt cannot
    parse also yields False.
    """
    if not plain_password:
        raise InvalidInputError("Password cannot be null or empty")
    if not hashed_password:
        raise InvalidInputError("Hashed password cannot be null or empty")

    password_bytes = plain_password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        return False

    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError:
        return False
