"""
Pydantic schemas for purchase request/response validation.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class PurchaseCreate(BaseModel):
    quantity: int = Field(..., ge=1)
    user_id: str = Field(..., min_length=1, max_length=255)


class PurchaseResponse(BaseModel):
    id: int
    ticket_id: int
    user_id: str
    quantity: int
    created_at: datetime

    model_config = {"from_attributes": True}
