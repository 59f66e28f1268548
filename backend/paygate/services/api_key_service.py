"""
API Key Service

Authenticates requests by API key and manages a merchant's keys.

Validation order is fixed so each failure is attributed correctly:
missing -> not found -> revoked -> merchant not approved.
"""
from datetime import datetime
from typing import List, Optional, Tuple
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..db import repositories
from ..db.models import ApiKeyModel, MerchantModel
from ..exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from ..models.status import MerchantStatus
from .api_key_generator import generate_api_key, hash_api_key
from .merchant_service import find_merchant_by_id

logger = logging.getLogger(__name__)

AUTH_SCHEME_PREFIX = "ApiKey "

# Same text for a missing key and an unknown key
INVALID_KEY_MESSAGE = "Invalid or missing API key"


# ============================================================================
# Authentication
# ============================================================================

def extract_api_key(authorization_header: Optional[str]) -> str:
    """
    Pull the key out of an "ApiKey <key>" Authorization header.

    Raises:
        UnauthorizedError: Header missing, wrong scheme, or empty key
    """
    if authorization_header is None or not authorization_header.strip():
        raise UnauthorizedError("Missing Authorization header")

    if not authorization_header.startswith(AUTH_SCHEME_PREFIX):
        logger.warning("Invalid Authorization header format")
        raise UnauthorizedError("Invalid Authorization header format. Expected: ApiKey <key>")

    api_key = authorization_header[len(AUTH_SCHEME_PREFIX):]
    if not api_key.strip():
        raise UnauthorizedError("API key is empty")

    return api_key


async def validate_api_key(db: AsyncSession, api_key: Optional[str]) -> MerchantModel:
    """
    Resolve a plain-text API key to its approved merchant.

    Process:
    1. Hash the key with SHA-256
    2. Look the digest up in api_keys
    3. Reject revoked keys
    4. Reject merchants that are not APPROVED
    5. Touch last_used_at

    The last_used_at touch is committed on its own; it records usage
    and does not take part in the caller's later writes.

    Raises:
        UnauthorizedError: Key missing, unknown, revoked, or merchant not approved
    """
    if api_key is None or not api_key.strip():
        logger.warning("API key validation failed: API key is null or empty")
        raise UnauthorizedError(INVALID_KEY_MESSAGE)

    key_record = await repositories.find_api_key_by_hash(db, hash_api_key(api_key))
    if key_record is None:
        logger.warning("API key validation failed: No API key found with provided hash")
        raise UnauthorizedError(INVALID_KEY_MESSAGE)

    if key_record.revoked:
        logger.warning(f"API key validation failed: API key {key_record.id} has been revoked")
        raise UnauthorizedError("API key has been revoked")

    merchant = await repositories.find_merchant_by_id(db, key_record.merchant_id)
    if merchant is None or merchant.status != MerchantStatus.APPROVED:
        status = merchant.status.value if merchant is not None else None
        logger.warning(
            f"API key validation failed: Merchant {key_record.merchant_id} "
            f"has status {status} (not APPROVED)"
        )
        raise UnauthorizedError("Merchant account is not approved")

    key_record.last_used_at = datetime.utcnow()
    await db.commit()

    logger.debug(f"API key {key_record.id} authenticated merchant {merchant.id}")
    return merchant


async def authenticate_from_header(db: AsyncSession, authorization_header: Optional[str]) -> MerchantModel:
    """Extract the key from the header and validate it."""
    api_key = extract_api_key(authorization_header)
    return await validate_api_key(db, api_key)


# ============================================================================
# Key management
# ============================================================================

async def generate_additional_key(
    db: AsyncSession,
    merchant_id: int,
    label: str
) -> Tuple[ApiKeyModel, str]:
    """
    Mint another key for an approved merchant.

    Returns:
        (stored key record, plain-text key). The plain key is not
        retrievable after this call.

    Raises:
        NotFoundError: Merchant does not exist
        UnauthorizedError: Merchant is not APPROVED
    """
    merchant = await find_merchant_by_id(db, merchant_id)

    if merchant.status != MerchantStatus.APPROVED:
        logger.warning(
            f"API key generation failed: Merchant {merchant_id} has status "
            f"{merchant.status.value} (not APPROVED)"
        )
        raise UnauthorizedError("Only approved merchants can generate API keys")

    plain_key = generate_api_key()
    key_record = ApiKeyModel(
        merchant_id=merchant.id,
        key_hash=hash_api_key(plain_key),
        label=label,
        revoked=False
    )
    db.add(key_record)
    await db.commit()

    logger.info(f"Generated new API key with ID {key_record.id} for merchant {merchant_id}")
    return key_record, plain_key


async def revoke_api_key(db: AsyncSession, merchant_id: int, key_id: int) -> None:
    """
    Revoke one of the merchant's keys.

    Revoking a key that is already revoked is a silent no-op.

    Raises:
        NotFoundError: Key does not exist
        ForbiddenError: Key belongs to another merchant
    """
    key_record = await repositories.find_api_key_by_id(db, key_id)
    if key_record is None:
        raise NotFoundError(f"API key not found with ID: {key_id}")

    if key_record.merchant_id != merchant_id:
        logger.warning(f"API key revocation failed: Key {key_id} does not belong to merchant {merchant_id}")
        raise ForbiddenError("You do not have permission to revoke this API key")

    if key_record.revoked:
        logger.info(f"API key {key_id} is already revoked")
        return

    key_record.revoked = True
    await db.commit()

    logger.info(f"Revoked API key {key_id} for merchant {merchant_id}")


async def list_api_keys(db: AsyncSession, merchant_id: int) -> List[ApiKeyModel]:
    """All of the merchant's keys, newest first."""
    logger.debug(f"Listing API keys for merchant {merchant_id}")
    return await repositories.find_api_keys_by_merchant(db, merchant_id)


async def list_active_api_keys(db: AsyncSession, merchant_id: int) -> List[ApiKeyModel]:
    """Non-revoked keys, newest first."""
    return await repositories.find_api_keys_by_merchant(db, merchant_id, revoked=False)
