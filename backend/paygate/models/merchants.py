"""
Pydantic Merchant Models

Request bodies for registration, login and admin actions, and the
merchant views returned by the API.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from .status import MerchantStatus

PASSWORD_SPECIALS = "@#$%^&+=!"


class MerchantRegistrationRequest(BaseModel):
    """New merchant sign-up."""
    name: str = Field(min_length=1, max_length=255, description="Merchant business name")
    email: EmailStr = Field(description="Merchant email address (must be unique)")
    password: str = Field(
        min_length=8,
        max_length=72,
        description="Min 8 chars, 1 uppercase, 1 number, 1 special char (@#$%^&+=!)"
    )

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        """Require an upper-case letter, a digit and a special character."""
        if not (
            any(c.isupper() for c in v)
            and any(c.isdigit() for c in v)
            and any(c in PASSWORD_SPECIALS for c in v)
        ):
            raise ValueError(
                "Password must contain at least 1 uppercase letter, 1 number, "
                f"and 1 special character ({PASSWORD_SPECIALS})"
            )
        return v

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Acme Store",
                "email": "merchant@acmestore.com",
                "password": "SecureP@ss123"
            }
        }
    }


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)


class MerchantActionRequest(BaseModel):
    """Reason attached to a reject or suspend action."""
    reason: str = Field(min_length=10, max_length=500)


class MerchantResponse(BaseModel):
    """Merchant view returned by profile, login and admin endpoints."""
    id: int
    name: str
    email: str
    status: MerchantStatus
    email_verified: bool
    status_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MerchantRegistrationResponse(BaseModel):
    """
    Registration result.

    api_key is the only time the plain-text key is ever returned.
    """
    id: int
    name: str
    email: str
    api_key: str
    status: MerchantStatus
    created_at: datetime
    warning: str = "Store this API key securely. It will not be shown again."
