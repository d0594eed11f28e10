"""
Trip schemas.

Creation payload, listing filters and response DTOs.
"""

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from carpool.app.models.enums import VehicleType
from carpool.app.schemas.common import UTCDateTime


class TripCreate(BaseModel):
    """Schema for offering a new trip (the caller becomes the driver)."""
    origin: str = Field(..., min_length=1, max_length=255)
    destination: str = Field(..., min_length=1, max_length=255)
    departure_at: UTCDateTime = Field(..., description="Must be in the future")
    price: float = Field(..., ge=0)
    seats: int = Field(..., ge=1, description="Seat capacity offered to passengers")
    description: Optional[str] = Field(None, max_length=2000)
    vehicle_id: Optional[int] = Field(None, description="One of the driver's own vehicles")


class BookTrip(BaseModel):
    """Legacy direct booking payload."""
    seats: int = Field(..., ge=1, description="Number of seats to book")


class TripFilters(BaseModel):
    """
    Listing filters.

    Every field is optional and validated on its own before being turned into
    a query predicate.
    """
    origin: Optional[str] = Field(None, min_length=1, max_length=255)
    destination: Optional[str] = Field(None, min_length=1, max_length=255)
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    min_seats: Optional[int] = Field(None, ge=1)
    available_only: bool = False
    on_date: Optional[date] = None
    time_frame: Optional[Literal["upcoming", "past"]] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=100)

    @model_validator(mode="after")
    def check_price_range(self):
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price")
        return self


class DriverSummary(BaseModel):
    id: int
    name: str
    rating: float
    is_verified: bool

    class Config:
        from_attributes = True


class VehicleSummary(BaseModel):
    id: int
    vehicle_type: VehicleType
    brand: str
    model: str
    seat_count: int

    class Config:
        from_attributes = True


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: int
    origin: str
    destination: str
    departure_at: UTCDateTime
    price: float
    description: Optional[str]
    total_seats: int
    available_seats: int
    is_full: bool
    completed_by_driver: bool
    completed_by_passenger: bool
    is_completed: bool
    driver: DriverSummary
    vehicle: Optional[VehicleSummary] = None
    created_at: UTCDateTime

    class Config:
        from_attributes = True


class TripListResponse(BaseModel):
    """Schema for paginated trip list."""
    trips: List[TripResponse]
    total: int
    page: int
    page_size: int


class PastTrips(BaseModel):
    pending: List[TripResponse] = []
    completed: List[TripResponse] = []


class DashboardResponse(BaseModel):
    """The caller's visible trips split by time and completion."""
    upcoming: List[TripResponse] = []
    past: PastTrips = PastTrips()


class TripCompletionState(BaseModel):
    id: int
    is_completed: bool
    completed_by_driver: bool
    completed_by_passenger: bool

    class Config:
        from_attributes = True
