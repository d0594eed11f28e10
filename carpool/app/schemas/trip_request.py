"""
Trip request schemas.
"""

from typing import Optional

from pydantic import BaseModel, Field

from carpool.app.models.enums import RequestAction, RequestStatus, RequestType
from carpool.app.schemas.common import UTCDateTime


class TripRequestCreate(BaseModel):
    """
    Ask to join a trip.

    seats_requested is required for BOOKING and ignored for CHAT.
    """
    type: RequestType
    seats_requested: Optional[int] = Field(None, ge=1)


class TripRequestUpdate(BaseModel):
    action: RequestAction


class RequesterSummary(BaseModel):
    id: int
    name: str
    rating: float
    is_verified: bool

    class Config:
        from_attributes = True


class TripRequestResponse(BaseModel):
    id: int
    trip_id: int
    requester_id: int
    requester: Optional[RequesterSummary] = None
    type: RequestType
    status: RequestStatus
    seats_requested: Optional[int]
    created_at: UTCDateTime
    updated_at: UTCDateTime
    chat_id: Optional[int] = None

    class Config:
        from_attributes = True
