"""
Repository Lookups

The storage queries the services depend on. Every function takes the
caller's AsyncSession and never commits; transaction boundaries belong
to the service layer.
"""
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .models import MerchantModel, ApiKeyModel, PaymentModel, TransactionModel


# ============================================================================
# Merchants
# ============================================================================

async def find_merchant_by_id(db: AsyncSession, merchant_id: int) -> Optional[MerchantModel]:
    return await db.get(MerchantModel, merchant_id)


async def find_merchant_by_email(db: AsyncSession, email: str) -> Optional[MerchantModel]:
    result = await db.execute(
        select(MerchantModel).where(MerchantModel.email == email)
    )
    return result.scalar_one_or_none()


async def exists_merchant_by_email(db: AsyncSession, email: str) -> bool:
    result = await db.execute(
        select(MerchantModel.id).where(MerchantModel.email == email).limit(1)
    )
    return result.scalar_one_or_none() is not None


# ============================================================================
# API keys
# ============================================================================

async def find_api_key_by_hash(db: AsyncSession, key_hash: str) -> Optional[ApiKeyModel]:
    result = await db.execute(
        select(ApiKeyModel).where(ApiKeyModel.key_hash == key_hash)
    )
    return result.scalar_one_or_none()


async def find_api_key_by_id(db: AsyncSession, key_id: int) -> Optional[ApiKeyModel]:
    return await db.get(ApiKeyModel, key_id)


async def find_api_keys_by_merchant(
    db: AsyncSession,
    merchant_id: int,
    revoked: Optional[bool] = None
) -> List[ApiKeyModel]:
    """
    API keys owned by a merchant, newest first.

    Args:
        db: Database session
        merchant_id: Owning merchant
        revoked: Optional filter on the revoked flag
    """
    query = select(ApiKeyModel).where(ApiKeyModel.merchant_id == merchant_id)
    if revoked is not None:
        query = query.where(ApiKeyModel.revoked == revoked)
    result = await db.execute(
        query.order_by(ApiKeyModel.created_at.desc(), ApiKeyModel.id.desc())
    )
    return list(result.scalars().all())


# ============================================================================
# Payments
# ============================================================================

async def find_payment_by_id(db: AsyncSession, payment_id: int) -> Optional[PaymentModel]:
    return await db.get(PaymentModel, payment_id)


async def find_payments_by_merchant(
    db: AsyncSession,
    merchant_id: int,
    limit: int,
    offset: int = 0
) -> Tuple[List[PaymentModel], int]:
    """
    One page of a merchant's payments, newest first.

    Returns:
        (payments on the page, total payments for the merchant)
    """
    total = await db.scalar(
        select(func.count()).select_from(PaymentModel).where(PaymentModel.merchant_id == merchant_id)
    )
    result = await db.execute(
        select(PaymentModel)
        .where(PaymentModel.merchant_id == merchant_id)
        .order_by(PaymentModel.created_at.desc(), PaymentModel.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all()), total or 0


# ============================================================================
# Transactions
# ============================================================================

async def find_transactions_by_payment(db: AsyncSession, payment_id: int) -> List[TransactionModel]:
    result = await db.execute(
        select(TransactionModel)
        .where(TransactionModel.payment_id == payment_id)
        .order_by(TransactionModel.created_at.desc(), TransactionModel.id.desc())
    )
    return list(result.scalars().all())


async def find_transactions_by_merchant(db: AsyncSession, merchant_id: int) -> List[TransactionModel]:
    result = await db.execute(
        select(TransactionModel)
        .join(PaymentModel, TransactionModel.payment_id == PaymentModel.id)
        .where(PaymentModel.merchant_id == merchant_id)
        .order_by(TransactionModel.created_at.desc(), TransactionModel.id.desc())
    )
    return list(result.scalars().all())
