"""
Transaction Service

Append-only audit trail of payment lifecycle events.

The log_* functions only add a record to the caller's session. The
caller commits it together with the payment change it describes, so a
payment write and its audit record are persisted or lost as one.
"""
from typing import List, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..db import repositories
from ..db.models import PaymentModel, TransactionModel
from ..models.status import PaymentStatus, TransactionAction

logger = logging.getLogger(__name__)

DEFAULT_REFUND_REASON = "Refund requested"

_ACTION_BY_STATUS = {
    PaymentStatus.SUCCESS: TransactionAction.STATUS_UPDATE,
    PaymentStatus.FAILED: TransactionAction.STATUS_UPDATE,
    PaymentStatus.REFUNDED: TransactionAction.REFUND,
}


def action_for_status(status: PaymentStatus) -> TransactionAction:
    """Audit action recorded when a payment moves into the given status."""
    return _ACTION_BY_STATUS.get(status, TransactionAction.STATUS_UPDATE)


# ============================================================================
# Recording
# ============================================================================

def log_create(db: AsyncSession, payment: PaymentModel) -> TransactionModel:
    """Record payment creation. The payment must already have an id."""
    logger.debug(f"Logging CREATE transaction for payment ID: {payment.id}")
    transaction = TransactionModel(
        payment_id=payment.id,
        action=TransactionAction.CREATE,
        previous_status=None,
        new_status=payment.status,
        notes="Payment created"
    )
    db.add(transaction)
    return transaction


def log_status_update(
    db: AsyncSession,
    payment: PaymentModel,
    previous_status: PaymentStatus,
    new_status: PaymentStatus
) -> TransactionModel:
    logger.debug(f"Logging STATUS_UPDATE transaction for payment ID: {payment.id}")
    transaction = TransactionModel(
        payment_id=payment.id,
        action=TransactionAction.STATUS_UPDATE,
        previous_status=previous_status,
        new_status=new_status,
        notes=f"Status changed from {previous_status.value} to {new_status.value}"
    )
    db.add(transaction)
    return transaction


def log_refund(db: AsyncSession, payment: PaymentModel, reason: str) -> TransactionModel:
    logger.debug(f"Logging REFUND transaction for payment ID: {payment.id}")
    transaction = TransactionModel(
        payment_id=payment.id,
        action=TransactionAction.REFUND,
        previous_status=PaymentStatus.SUCCESS,
        new_status=PaymentStatus.REFUNDED,
        notes=f"Refund issued: {reason}"
    )
    db.add(transaction)
    return transaction


def log_transition(
    db: AsyncSession,
    payment: PaymentModel,
    previous_status: PaymentStatus,
    new_status: PaymentStatus,
    reason: Optional[str] = None
) -> TransactionModel:
    """Record a status change under the action matching its target status."""
    if action_for_status(new_status) == TransactionAction.REFUND:
        return log_refund(db, payment, reason or DEFAULT_REFUND_REASON)
    return log_status_update(db, payment, previous_status, new_status)


# ============================================================================
# Retrieval
# ============================================================================

async def list_transactions_for_payment(db: AsyncSession, payment_id: int) -> List[TransactionModel]:
    """Audit records of one payment, newest first."""
    return await repositories.find_transactions_by_payment(db, payment_id)


async def list_transactions_for_merchant(db: AsyncSession, merchant_id: int) -> List[TransactionModel]:
    """Audit records across all of a merchant's payments, newest first."""
    return await repositories.find_transactions_by_merchant(db, merchant_id)
