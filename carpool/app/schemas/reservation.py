"""
Trip reservation schemas (two-sided handshake lifecycle).
"""

from typing import Optional

from pydantic import BaseModel, Field

from carpool.app.schemas.trip import TripCompletionState


class ReservationRequest(BaseModel):
    trip_id: int = Field(..., ge=1)


class ReservationResponse(BaseModel):
    id: int
    trip_id: int
    passenger_id: int
    passenger_accepted: bool
    driver_accepted: bool
    is_confirmed: bool
    chat_id: Optional[int] = None

    class Config:
        from_attributes = True


class ReservationCompletionResponse(BaseModel):
    reservation: ReservationResponse
    trip: TripCompletionState
