"""
API Keys Endpoints

Generate, list and revoke the authenticated merchant's keys.
"""
from typing import Any, Dict, List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..db.init_db import get_db
from ..db.models import MerchantModel
from ..models.api_keys import ApiKeyResponse, GenerateApiKeyRequest
from ..services.api_key_service import generate_additional_key, list_api_keys, revoke_api_key
from .deps import get_current_merchant

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiKeyResponse)
async def generate_key_endpoint(
    request: GenerateApiKeyRequest,
    merchant: MerchantModel = Depends(get_current_merchant),
    db: AsyncSession = Depends(get_db)
) -> ApiKeyResponse:
    """
    Mint a new key. The plain-text key appears in this response only.
    """
    logger.info(f"Generating new API key for merchant {merchant.id} with label: {request.label}")
    key_record, plain_key = await generate_additional_key(db, merchant.id, request.label)
    response = ApiKeyResponse.model_validate(key_record)
    response.api_key = plain_key
    response.warning = "Store this API key securely. It will not be shown again."
    return response


@router.get("", response_model=List[ApiKeyResponse])
async def list_keys_endpoint(
    merchant: MerchantModel = Depends(get_current_merchant),
    db: AsyncSession = Depends(get_db)
) -> List[ApiKeyResponse]:
    """All keys of the merchant, newest first, without plain-text values."""
    keys = await list_api_keys(db, merchant.id)
    return [ApiKeyResponse.model_validate(k) for k in keys]


@router.delete("/{key_id}")
async def revoke_key_endpoint(
    key_id: int,
    merchant: MerchantModel = Depends(get_current_merchant),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    """Revoke a key. Repeating the call on a revoked key succeeds."""
    logger.info(f"Revoking API key {key_id} for merchant {merchant.id}")
    await revoke_api_key(db, merchant.id, key_id)
    return {"key_id": key_id, "revoked": True, "message": "API key revoked successfully"}
