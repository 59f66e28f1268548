"""
Transactions API Endpoints

Audit trail across all of the authenticated merchant's payments.
Per-payment trails live under /api/v1/payments/{payment_id}/transactions.
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..db.init_db import get_db
from ..db.models import MerchantModel
from ..models.payments import TransactionResponse
from ..services.transaction_service import list_transactions_for_merchant
from .deps import get_current_merchant

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[TransactionResponse])
async def merchant_transactions_endpoint(
    merchant: MerchantModel = Depends(get_current_merchant),
    db: AsyncSession = Depends(get_db)
) -> List[TransactionResponse]:
    """
    Every audit record of the merchant's payments, newest first.

    Example:
        GET /api/v1/transactions
    """
    logger.debug(f"Retrieving audit trail for merchant: {merchant.id}")
    transactions = await list_transactions_for_merchant(db, merchant.id)
    return [TransactionResponse.model_validate(t) for t in transactions]
