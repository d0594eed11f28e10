"""
Vehicle Pydantic schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from carpool.app.models.enums import VehicleType
from carpool.app.schemas.common import UTCDateTime


class VehicleCreate(BaseModel):
    """Schema for registering a new vehicle."""
    vehicle_type: VehicleType = Field(..., description="CAR, MOTORCYCLE or VAN")
    brand: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    seat_count: int = Field(..., ge=1, description="Seats including the driver's")
    license_plate: Optional[str] = Field(None, min_length=1, max_length=32)


class VehicleResponse(BaseModel):
    id: int
    owner_id: int
    vehicle_type: VehicleType
    brand: str
    model: str
    seat_count: int
    license_plate: Optional[str]
    created_at: UTCDateTime

    class Config:
        from_attributes = True


class VehicleListResponse(BaseModel):
    vehicles: List[VehicleResponse]
    total: int
