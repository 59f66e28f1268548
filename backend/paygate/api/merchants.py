"""
Merchants API Endpoints

Public registration and the authenticated merchant's profile.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..db.init_db import get_db
from ..db.models import MerchantModel
from ..models.merchants import (
    MerchantRegistrationRequest,
    MerchantRegistrationResponse,
    MerchantResponse,
)
from ..services.merchant_service import register_merchant
from .deps import get_current_merchant

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=MerchantRegistrationResponse
)
async def register_endpoint(
    request: MerchantRegistrationRequest,
    db: AsyncSession = Depends(get_db)
) -> MerchantRegistrationResponse:
    """
    Register a merchant account (status PENDING until an admin approves it).

    Returns:
        Merchant details plus the plain-text API key. The key is shown
        only in this response.

    Example:
        POST /api/v1/merchants/register
        {"name": "Acme Store", "email": "merchant@acmestore.com", "password": "SecureP@ss123"}
    """
    merchant, plain_api_key = await register_merchant(
        db, request.name, request.email, request.password
    )
    return MerchantRegistrationResponse(
        id=merchant.id,
        name=merchant.name,
        email=merchant.email,
        api_key=plain_api_key,
        status=merchant.status,
        created_at=merchant.created_at
    )


@router.get("/profile", response_model=MerchantResponse)
async def profile_endpoint(
    merchant: MerchantModel = Depends(get_current_merchant)
) -> MerchantResponse:
    """Profile of the merchant owning the presented API key."""
    logger.debug(f"Profile request from merchant ID: {merchant.id}")
    return MerchantResponse.model_validate(merchant)
