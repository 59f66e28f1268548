"""
Pydantic Payment Models

Request bodies and views for payments and their audit trail.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from .status import PaymentStatus, TransactionAction


class PaymentCreateRequest(BaseModel):
    amount: Decimal = Field(
        ge=Decimal("0.01"),
        le=Decimal("999999.99"),
        max_digits=8,
        decimal_places=2,
        description="Payment amount (positive decimal with max 2 decimal places)"
    )
    currency: str = Field(pattern=r"^[A-Z]{3}$", description="ISO 4217 currency code")
    description: Optional[str] = Field(default=None, max_length=500)

    model_config = {
        "json_schema_extra": {
            "example": {
                "amount": "49.99",
                "currency": "USD",
                "description": "Order #12345 - Premium Subscription"
            }
        }
    }


class PaymentStatusUpdateRequest(BaseModel):
    """Target status. Valid: PENDING->SUCCESS, PENDING->FAILED, SUCCESS->REFUNDED."""
    status: PaymentStatus


class RefundRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class PaymentResponse(BaseModel):
    id: int
    merchant_id: int
    amount: Decimal
    currency: str
    description: Optional[str] = None
    status: PaymentStatus
    refund_reason: Optional[str] = None
    refunded_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaymentListResponse(BaseModel):
    items: List[PaymentResponse]
    total: int
    page: int
    size: int
    total_pages: int


class TransactionResponse(BaseModel):
    """One audit trail entry."""
    id: int
    payment_id: int
    action: TransactionAction
    previous_status: Optional[PaymentStatus] = None
    new_status: Optional[PaymentStatus] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
