"""
Merchant Service

Registration, credential verification and the admin approval workflow.

Merchant status machine (initial PENDING):
- PENDING  -> APPROVED   (approve)
- PENDING  -> REJECTED   (reject, reason required)
- APPROVED -> SUSPENDED  (suspend, reason required)
REJECTED and SUSPENDED have no way back.
"""
from typing import Optional, Tuple
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import repositories
from ..db.models import MerchantModel, ApiKeyModel
from ..exceptions import (
    ConflictError,
    InvalidInputError,
    InvalidStateTransitionError,
    NotFoundError,
    UnauthorizedError,
)
from ..models.status import MerchantStatus
from .api_key_generator import generate_api_key, hash_api_key
from .password_hasher import hash_password, verify_password

logger = logging.getLogger(__name__)

DEFAULT_KEY_LABEL = "Default"
REASON_MIN_LENGTH = 10
REASON_MAX_LENGTH = 500

# Shared by both login failure paths so the two are indistinguishable
LOGIN_FAILED_MESSAGE = "Invalid email or password"


# ============================================================================
# Registration
# ============================================================================

async def register_merchant(
    db: AsyncSession,
    name: str,
    email: str,
    password: str
) -> Tuple[MerchantModel, str]:
    """
    Register a merchant together with its initial API key.

    Args:
        db: Database session
        name: Business name
        email: Login email (unique)
        password: Plain-text password

    Returns:
        (merchant, plain-text API key). The key is returned only here;
        only its digest is persisted.

    Raises:
        ConflictError: Email already registered
    """
    logger.info(f"Processing merchant registration for email: {email}")

    if await repositories.exists_merchant_by_email(db, email):
        logger.warning(f"Registration failed: Email already exists: {email}")
        raise ConflictError("Email already registered")

    plain_api_key = generate_api_key()
    password_hash = hash_password(password)
    api_key_hash = hash_api_key(plain_api_key)

    merchant = MerchantModel(
        name=name,
        email=email,
        password_hash=password_hash,
        status=MerchantStatus.PENDING,
        email_verified=False
    )

    try:
        db.add(merchant)
        await db.flush()
        db.add(ApiKeyModel(
            merchant_id=merchant.id,
            key_hash=api_key_hash,
            label=DEFAULT_KEY_LABEL,
            revoked=False
        ))
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        await db.rollback()
        logger.warning(f"Registration failed: Email already exists: {email}")
        raise ConflictError("Email already registered")

    logger.info(f"Merchant registered successfully with ID: {merchant.id} (status: PENDING)")
    return merchant, plain_api_key


# ============================================================================
# Lookup and login
# ============================================================================

async def find_merchant_by_id(db: AsyncSession, merchant_id: int) -> MerchantModel:
    merchant = await repositories.find_merchant_by_id(db, merchant_id)
    if merchant is None:
        raise NotFoundError(f"Merchant not found with ID: {merchant_id}")
    return merchant


async def find_merchant_by_email(db: AsyncSession, email: str) -> MerchantModel:
    merchant = await repositories.find_merchant_by_email(db, email)
    if merchant is None:
        raise NotFoundError(f"Merchant not found with email: {email}")
    return merchant


async def login(db: AsyncSession, email: str, password: str) -> MerchantModel:
    """
    Verify email and password.

    Unknown email and wrong password fail with the same message.
    """
    logger.info(f"Login attempt for email: {email}")

    merchant = await repositories.find_merchant_by_email(db, email)
    if merchant is None:
        logger.warning(f"Login failed: Merchant not found with email: {email}")
        raise UnauthorizedError(LOGIN_FAILED_MESSAGE)

    if not password or not verify_password(password, merchant.password_hash):
        logger.warning(f"Login failed: Invalid password for email: {email}")
        raise UnauthorizedError(LOGIN_FAILED_MESSAGE)

    logger.info(f"Login successful for merchant ID: {merchant.id} (email: {email})")
    return merchant


# ============================================================================
# Admin workflow
# ============================================================================

def _validate_reason(reason: str) -> str:
    if not reason or not reason.strip():
        raise InvalidInputError("Reason is required", {"reason": "Reason is required"})
    if not REASON_MIN_LENGTH <= len(reason) <= REASON_MAX_LENGTH:
        message = f"Reason must be between {REASON_MIN_LENGTH} and {REASON_MAX_LENGTH} characters"
        raise InvalidInputError(message, {"reason": message})
    return reason


async def _transition(
    db: AsyncSession,
    merchant_id: int,
    required: MerchantStatus,
    target: MerchantStatus,
    verb: str,
    reason: Optional[str] = None
) -> MerchantModel:
    merchant = await find_merchant_by_id(db, merchant_id)

    if merchant.status != required:
        logger.warning(
            f"Merchant {merchant_id} cannot be {verb}: status is "
            f"{merchant.status.value} (expected {required.value})"
        )
        raise InvalidStateTransitionError(
            f"Only merchants with {required.value} status can be {verb}. "
            f"Current status: {merchant.status.value}",
            current_state=merchant.status.value,
            attempted_action=verb
        )

    merchant.status = target
    if reason is not None:
        merchant.status_reason = reason
    await db.commit()
    return merchant


async def approve_merchant(db: AsyncSession, merchant_id: int) -> MerchantModel:
    """PENDING -> APPROVED."""
    logger.info(f"Processing merchant approval for ID: {merchant_id}")
    merchant = await _transition(
        db, merchant_id, MerchantStatus.PENDING, MerchantStatus.APPROVED, "approved"
    )
    logger.info(f"Merchant {merchant_id} approved successfully")
    return merchant


async def reject_merchant(db: AsyncSession, merchant_id: int, reason: str) -> MerchantModel:
    """PENDING -> REJECTED. Reason must be 10-500 characters."""
    logger.info(f"Processing merchant rejection for ID: {merchant_id} with reason: {reason}")
    reason = _validate_reason(reason)
    merchant = await _transition(
        db, merchant_id, MerchantStatus.PENDING, MerchantStatus.REJECTED, "rejected", reason
    )
    logger.info(f"Merchant {merchant_id} rejected successfully. Reason: {reason}")
    return merchant


async def suspend_merchant(db: AsyncSession, merchant_id: int, reason: str) -> MerchantModel:
    """APPROVED -> SUSPENDED. Reason must be 10-500 characters."""
    logger.info(f"Processing merchant suspension for ID: {merchant_id} with reason: {reason}")
    reason = _validate_reason(reason)
    merchant = await _transition(
        db, merchant_id, MerchantStatus.APPROVED, MerchantStatus.SUSPENDED, "suspended", reason
    )
    logger.info(f"Merchant {merchant_id} suspended successfully. Reason: {reason}")
    return merchant
