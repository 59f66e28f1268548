"""
Pydantic API Key Models
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class GenerateApiKeyRequest(BaseModel):
    label: str = Field(min_length=1, max_length=100, description="Label/name for the API key")


class ApiKeyResponse(BaseModel):
    """
    Stored key metadata.

    api_key and warning are set only in the response to key generation.
    """
    id: int
    label: Optional[str] = None
    revoked: bool
    last_used_at: Optional[datetime] = None
    created_at: datetime
    api_key: Optional[str] = None
    warning: Optional[str] = None

    model_config = {"from_attributes": True}
