"""
Shared API Dependencies

get_current_merchant resolves the "Authorization: ApiKey <key>" header
to an approved merchant, or fails with 401 and the specific reason.
"""
from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.init_db import get_db
from ..db.models import MerchantModel
from ..services.api_key_service import authenticate_from_header


async def get_current_merchant(
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db)
) -> MerchantModel:
    return await authenticate_from_header(db, authorization)
