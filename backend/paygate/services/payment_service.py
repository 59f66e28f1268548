"""
Payment Service

Payment creation, retrieval and the status state machine. Every
mutation is committed together with its audit record.

Valid transitions:
- PENDING -> SUCCESS
- PENDING -> FAILED
- SUCCESS -> REFUNDED
Same-state updates are rejected; FAILED and REFUNDED are terminal.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Union
import logging
import math
import re

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..db import repositories
from ..db.models import PaymentModel
from ..exceptions import (
    ForbiddenError,
    InvalidInputError,
    InvalidStateTransitionError,
    NotFoundError,
)
from ..models.status import PaymentStatus
from . import transaction_service
from .merchant_service import find_merchant_by_id

logger = logging.getLogger(__name__)

MAX_AMOUNT = Decimal("999999.99")
CENTS = Decimal("0.01")
CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")
DESCRIPTION_MAX_LENGTH = 500

_ALLOWED_TRANSITIONS = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.SUCCESS, PaymentStatus.FAILED}),
    PaymentStatus.SUCCESS: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}


@dataclass
class PaymentPage:
    """One page of a merchant's payments, newest first."""
    items: List[PaymentModel]
    total: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.size) if self.size else 0


# ============================================================================
# State machine
# ============================================================================

def is_valid_transition(current: PaymentStatus, requested: PaymentStatus) -> bool:
    return requested in _ALLOWED_TRANSITIONS[current]


def next_payment_status(current: PaymentStatus, requested: PaymentStatus) -> PaymentStatus:
    """
    Return the status a payment moves to, or raise if the edge is illegal.

    Raises:
        InvalidStateTransitionError: requested is not reachable from current
    """
    if not is_valid_transition(current, requested):
        raise InvalidStateTransitionError(
            f"Cannot transition payment from {current.value} to {requested.value}",
            current_state=current.value,
            attempted_action=requested.value
        )
    return requested


# ============================================================================
# Input checks
# ============================================================================

def _normalize_amount(amount: Union[Decimal, int, float, str]) -> Decimal:
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise InvalidInputError("Amount must be a number", {"amount": "Amount must be a number"})

    if not value.is_finite() or value <= 0:
        raise InvalidInputError("Amount must be at least 0.01", {"amount": "Amount must be at least 0.01"})
    if value > MAX_AMOUNT:
        raise InvalidInputError("Amount must not exceed 999999.99", {"amount": "Amount must not exceed 999999.99"})
    if value != value.quantize(CENTS):
        message = "Amount must have at most 2 decimal places"
        raise InvalidInputError(message, {"amount": message})
    return value.quantize(CENTS)


def _validate_currency(currency: str) -> str:
    if not currency or not CURRENCY_PATTERN.match(currency):
        message = "Currency must be a valid ISO 4217 code (e.g., USD, EUR)"
        raise InvalidInputError(message, {"currency": message})
    return currency


def _coerce_status(status: Union[PaymentStatus, str]) -> PaymentStatus:
    try:
        return PaymentStatus(status)
    except ValueError:
        raise InvalidInputError(f"Unknown payment status: {status}", {"status": "Unknown payment status"})


# ============================================================================
# Operations
# ============================================================================

async def create_payment(
    db: AsyncSession,
    merchant_id: int,
    amount: Union[Decimal, int, float, str],
    currency: str,
    description: Optional[str] = None
) -> PaymentModel:
    """
    Create a PENDING payment and its CREATE audit record.

    Raises:
        NotFoundError: Merchant does not exist
        InvalidInputError: Amount, currency or description malformed
    """
    logger.info(f"Creating payment for merchant ID: {merchant_id}, amount: {amount} {currency}")

    await find_merchant_by_id(db, merchant_id)

    value = _normalize_amount(amount)
    currency = _validate_currency(currency)
    if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
        message = f"Description must not exceed {DESCRIPTION_MAX_LENGTH} characters"
        raise InvalidInputError(message, {"description": message})

    payment = PaymentModel(
        merchant_id=merchant_id,
        amount=value,
        currency=currency,
        description=description,
        status=PaymentStatus.PENDING
    )

    try:
        db.add(payment)
        await db.flush()
        transaction_service.log_create(db, payment)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Payment created successfully: ID={payment.id}, Status={payment.status.value}")
    return payment


async def get_payment(db: AsyncSession, payment_id: int, merchant_id: int) -> PaymentModel:
    """
    Fetch a payment owned by the requesting merchant.

    Existence is checked before ownership.

    Raises:
        NotFoundError: No payment with that id
        ForbiddenError: Payment belongs to another merchant
    """
    logger.debug(f"Retrieving payment ID: {payment_id} for merchant ID: {merchant_id}")

    payment = await repositories.find_payment_by_id(db, payment_id)
    if payment is None:
        raise NotFoundError(f"Payment not found with ID: {payment_id}")

    if payment.merchant_id != merchant_id:
        logger.warning(
            f"Merchant {merchant_id} attempted to access payment {payment_id} "
            f"owned by merchant {payment.merchant_id}"
        )
        raise ForbiddenError("Access denied: You do not have permission to access this payment")

    return payment


async def list_payments(
    db: AsyncSession,
    merchant_id: int,
    page: int = 0,
    size: Optional[int] = None
) -> PaymentPage:
    """
    Page through a merchant's payments, newest first.

    Args:
        page: Zero-based page number
        size: Page size, defaults to settings.default_page_size
    """
    size = settings.default_page_size if size is None else size
    if page < 0:
        raise InvalidInputError("Page must not be negative", {"page": "Page must not be negative"})
    if not 1 <= size <= settings.max_page_size:
        message = f"Size must be between 1 and {settings.max_page_size}"
        raise InvalidInputError(message, {"size": message})

    logger.debug(f"Listing payments for merchant ID: {merchant_id} (page={page}, size={size})")
    items, total = await repositories.find_payments_by_merchant(
        db, merchant_id, limit=size, offset=page * size
    )
    return PaymentPage(items=items, total=total, page=page, size=size)


async def update_payment_status(
    db: AsyncSession,
    payment_id: int,
    merchant_id: int,
    new_status: Union[PaymentStatus, str],
    reason: Optional[str] = None
) -> PaymentModel:
    """
    Move a payment along the state machine and record the change.

    Raises:
        NotFoundError: No payment with that id
        ForbiddenError: Payment belongs to another merchant
        InvalidStateTransitionError: Edge not allowed (status left unchanged)
    """
    new_status = _coerce_status(new_status)
    logger.info(f"Updating payment {payment_id} status to {new_status.value} for merchant {merchant_id}")

    payment = await get_payment(db, payment_id, merchant_id)
    previous_status = payment.status

    try:
        next_payment_status(previous_status, new_status)
    except InvalidStateTransitionError:
        logger.warning(
            f"Invalid status transition: {previous_status.value} -> {new_status.value} "
            f"for payment {payment_id}"
        )
        raise

    try:
        payment.status = new_status
        if new_status == PaymentStatus.REFUNDED:
            payment.refund_reason = reason or transaction_service.DEFAULT_REFUND_REASON
            payment.refunded_at = datetime.utcnow()
        transaction_service.log_transition(db, payment, previous_status, new_status, reason)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Payment {payment_id} status updated: {previous_status.value} -> {new_status.value}")
    return payment


async def refund_payment(
    db: AsyncSession,
    payment_id: int,
    merchant_id: int,
    reason: Optional[str] = None
) -> PaymentModel:
    """Refund a SUCCESS payment; same as update_payment_status(..., REFUNDED)."""
    logger.info(f"Processing refund for payment {payment_id} by merchant {merchant_id}")
    return await update_payment_status(db, payment_id, merchant_id, PaymentStatus.REFUNDED, reason)
