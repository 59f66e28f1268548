"""
SQLAlchemy ORM Models for PayGate

Tables: merchants, api_keys, payments, transactions.
Merchants own their API keys and payments; a payment owns its audit
transactions. Cross-entity lookups go through foreign keys only.
"""
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, ForeignKey, Numeric, CheckConstraint, Enum
)
from sqlalchemy.orm import declarative_base

from ..models.status import MerchantStatus, PaymentStatus, TransactionAction

Base = declarative_base()


class MerchantModel(Base):
    """
    ORM model for merchants table.

    Email is unique across all merchants. Rows are never deleted; the
    lifecycle is carried entirely by status.
    """
    __tablename__ = "merchants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    status = Column(
        Enum(MerchantStatus, native_enum=False, length=20),
        nullable=False,
        default=MerchantStatus.PENDING
    )
    email_verified = Column(Boolean, nullable=False, default=False)
    verified_at = Column(DateTime)
    status_reason = Column(String(500))  # Last reject/suspend reason
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED', 'SUSPENDED')",
            name="merchant_status_check"
        ),
    )


class ApiKeyModel(Base):
    """
    ORM model for api_keys table.

    Only the SHA-256 digest of a key is stored. Once revoked a key is
    never un-revoked.
    """
    __tablename__ = "api_keys"

    id = Column(Integer, primary_key=True, autoincrement=True)
    merchant_id = Column(
        Integer, ForeignKey("merchants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    key_hash = Column(String(64), nullable=False, unique=True, index=True)
    label = Column(String(100))
    revoked = Column(Boolean, nullable=False, default=False)
    last_used_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)


class PaymentModel(Base):
    """
    ORM model for payments table.

    merchant_id never changes after creation; status only moves along
    the payment state machine.
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    merchant_id = Column(
        Integer, ForeignKey("merchants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    description = Column(String(500))
    status = Column(
        Enum(PaymentStatus, native_enum=False, length=20),
        nullable=False,
        default=PaymentStatus.PENDING,
        index=True
    )
    refund_reason = Column(String(500))
    refunded_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("amount > 0", name="payment_amount_positive"),
        CheckConstraint(
            "status IN ('PENDING', 'SUCCESS', 'FAILED', 'REFUNDED')",
            name="payment_status_check"
        ),
    )


class TransactionModel(Base):
    """
    ORM model for transactions table.

    Append-only audit trail: one row per payment lifecycle event, never
    updated or deleted.
    """
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    payment_id = Column(
        Integer, ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    action = Column(Enum(TransactionAction, native_enum=False, length=50), nullable=False)
    previous_status = Column(Enum(PaymentStatus, native_enum=False, length=20))
    new_status = Column(Enum(PaymentStatus, native_enum=False, length=20))
    notes = Column(String(500))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    __table_args__ = (
        CheckConstraint(
            "action IN ('CREATE', 'STATUS_UPDATE', 'REFUND')",
            name="transaction_action_check"
        ),
    )
