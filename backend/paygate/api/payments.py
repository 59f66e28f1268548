"""
Payments API Endpoints

Payment lifecycle for the authenticated merchant plus each payment's
audit trail.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..db.init_db import get_db
from ..db.models import MerchantModel
from ..models.payments import (
    PaymentCreateRequest,
    PaymentListResponse,
    PaymentResponse,
    PaymentStatusUpdateRequest,
    RefundRequest,
    TransactionResponse,
)
from ..services import payment_service, transaction_service
from .deps import get_current_merchant

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=PaymentResponse)
async def create_payment_endpoint(
    request: PaymentCreateRequest,
    merchant: MerchantModel = Depends(get_current_merchant),
    db: AsyncSession = Depends(get_db)
) -> PaymentResponse:
    """
    Create a PENDING payment.

    Example:
        POST /api/v1/payments
        {"amount": "49.99", "currency": "USD", "description": "order 1"}
    """
    payment = await payment_service.create_payment(
        db, merchant.id, request.amount, request.currency, request.description
    )
    return PaymentResponse.model_validate(payment)


@router.get("", response_model=PaymentListResponse)
async def list_payments_endpoint(
    page: int = Query(0, ge=0, description="Zero-based page number"),
    size: Optional[int] = Query(None, ge=1, description="Page size"),
    merchant: MerchantModel = Depends(get_current_merchant),
    db: AsyncSession = Depends(get_db)
) -> PaymentListResponse:
    """Merchant's payments, newest first."""
    logger.info(f"Payment list request from merchant ID: {merchant.id} (page={page}, size={size})")
    result = await payment_service.list_payments(db, merchant.id, page, size)
    return PaymentListResponse(
        items=[PaymentResponse.model_validate(p) for p in result.items],
        total=result.total,
        page=result.page,
        size=result.size,
        total_pages=result.total_pages
    )


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment_endpoint(
    payment_id: int,
    merchant: MerchantModel = Depends(get_current_merchant),
    db: AsyncSession = Depends(get_db)
) -> PaymentResponse:
    """404 if the payment does not exist, 403 if another merchant owns it."""
    payment = await payment_service.get_payment(db, payment_id, merchant.id)
    return PaymentResponse.model_validate(payment)


@router.put("/{payment_id}/status", response_model=PaymentResponse)
async def update_status_endpoint(
    payment_id: int,
    request: PaymentStatusUpdateRequest,
    merchant: MerchantModel = Depends(get_current_merchant),
    db: AsyncSession = Depends(get_db)
) -> PaymentResponse:
    """Move the payment to a new status (400 on an illegal transition)."""
    payment = await payment_service.update_payment_status(
        db, payment_id, merchant.id, request.status
    )
    return PaymentResponse.model_validate(payment)


@router.post("/{payment_id}/refund", response_model=PaymentResponse)
async def refund_endpoint(
    payment_id: int,
    request: Optional[RefundRequest] = None,
    merchant: MerchantModel = Depends(get_current_merchant),
    db: AsyncSession = Depends(get_db)
) -> PaymentResponse:
    """Refund a SUCCESS payment."""
    reason = request.reason if request else None
    payment = await payment_service.refund_payment(db, payment_id, merchant.id, reason)
    return PaymentResponse.model_validate(payment)


@router.get("/{payment_id}/transactions", response_model=List[TransactionResponse])
async def payment_transactions_endpoint(
    payment_id: int,
    merchant: MerchantModel = Depends(get_current_merchant),
    db: AsyncSession = Depends(get_db)
) -> List[TransactionResponse]:
    """Audit trail of an owned payment, newest first."""
    await payment_service.get_payment(db, payment_id, merchant.id)
    transactions = await transaction_service.list_transactions_for_payment(db, payment_id)
    return [TransactionResponse.model_validate(t) for t in transactions]
