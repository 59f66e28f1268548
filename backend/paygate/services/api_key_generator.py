"""
API Key Generation and Hashing

Keys are 256 random bits, hex encoded and tagged with a readable prefix.
They are stored as an unsalted SHA-256 digest: the keys are already
high-entropy, and the digest has to be deterministic so validation can
look a key up by equality on an indexed column.

generate_api_key() output is shown to the merchant once and never stored.
"""
import hashlib
import hmac
import secrets

from ..config import settings
from ..exceptions import InvalidInputError

KEY_BYTES = 32  # 256 bits -> 64 hex chars


def generate_api_key() -> str:
    """Mint a new plain-text API key, e.g. sk_live_3f9a...."""
    return f"{settings.api_key_prefix}{secrets.token_hex(KEY_BYTES)}"


def hash_api_key(api_key: str) -> str:
    """
    SHA-256 hex digest of the key's UTF-8 bytes.

    Used both when a key is stored and when a presented key is looked up,
    so the two must always go through this function.
    """
    if not api_key:
        raise InvalidInputError("API key cannot be null or empty")
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def verify_api_key(api_key: str, stored_hash: str) -> bool:
    """
    Constant-time check of a plain key against a stored digest.

    Public helper for callers holding a single stored digest. Request
    authentication looks keys up by digest instead.
    """
    if not api_key:
        raise InvalidInputError("API key cannot be null or empty")
    if not stored_hash:
        raise InvalidInputError("Stored hash cannot be null or empty")
    return hmac.compare_digest(hash_api_key(api_key), stored_hash)
