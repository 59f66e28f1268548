"""
Admin API Endpoints

Merchant approval workflow. Not behind authentication; deployments are
expected to restrict /api/v1/admin at the network edge.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..db.init_db import get_db
from ..models.merchants import MerchantActionRequest, MerchantResponse
from ..services.merchant_service import approve_merchant, reject_merchant, suspend_merchant

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/{merchant_id}/approve", response_model=MerchantResponse)
async def approve_endpoint(
    merchant_id: int,
    db: AsyncSession = Depends(get_db)
) -> MerchantResponse:
    """PENDING -> APPROVED."""
    logger.info(f"Admin approval request for merchant ID: {merchant_id}")
    merchant = await approve_merchant(db, merchant_id)
    return MerchantResponse.model_validate(merchant)


@router.post("/{merchant_id}/reject", response_model=MerchantResponse)
async def reject_endpoint(
    merchant_id: int,
    request: MerchantActionRequest,
    db: AsyncSession = Depends(get_db)
) -> MerchantResponse:
    """PENDING -> REJECTED."""
    logger.info(f"Admin rejection request for merchant ID: {merchant_id}")
    merchant = await reject_merchant(db, merchant_id, request.reason)
    return MerchantResponse.model_validate(merchant)


@router.post("/{merchant_id}/suspend", response_model=MerchantResponse)
async def suspend_endpoint(
    merchant_id: int,
    request: MerchantActionRequest,
    db: AsyncSession = Depends(get_db)
) -> MerchantResponse:
    """APPROVED -> SUSPENDED."""
    logger.info(f"Admin suspension request for merchant ID: {merchant_id}")
    merchant = await suspend_merchant(db, merchant_id, request.reason)
    return MerchantResponse.model_validate(merchant)
