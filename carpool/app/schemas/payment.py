"""
Payment schemas.
"""

from typing import Optional

from pydantic import BaseModel, Field

from carpool.app.models.enums import PaymentStatus
from carpool.app.schemas.common import UTCDateTime


class PaymentCreate(BaseModel):
    amount: float = Field(..., ge=0, description="Amount must be positive")
    request_id: Optional[int] = Field(None, ge=1)


class PaymentResponse(BaseModel):
    id: int
    trip_id: int
    payer_id: int
    request_id: Optional[int]
    amount: float
    status: PaymentStatus
    provider_ref: Optional[str]
    created_at: UTCDateTime
    updated_at: UTCDateTime

    class Config:
        from_attributes = True
