"""
Auth API Endpoints

Email/password login. Does not return an API key.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..db.init_db import get_db
from ..models.merchants import LoginRequest, MerchantResponse
from ..services.merchant_service import login

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=MerchantResponse)
async def login_endpoint(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db)
) -> MerchantResponse:
    """
    Authenticate a merchant by email and password.

    Unknown email and wrong password both answer 401
    "Invalid email or password".
    """
    merchant = await login(db, request.email, request.password)
    return MerchantResponse.model_validate(merchant)
