"""
Trip endpoints.

Offering trips, filtered listings (private and public), the dashboard and
the legacy direct-booking route.
"""

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from carpool.app.core.dependencies import get_current_user
from carpool.app.core.exceptions import BadRequestError
from carpool.app.db.session import get_db
from carpool.app.domain.reservations.request_state_machine import RequestStateMachine
from carpool.app.models.enums import RequestType
from carpool.app.schemas.trip import (
    BookTrip, DashboardResponse, TripCreate, TripFilters, TripListResponse, TripResponse
)
from carpool.app.schemas.trip_request import TripRequestResponse
from carpool.app.services import trip_inventory

router = APIRouter(prefix="/trips", tags=["Trips"])


def get_trip_filters(
    origin: Optional[str] = Query(None, description="Case-insensitive substring"),
    destination: Optional[str] = Query(None, description="Case-insensitive substring"),
    min_price: Optional[float] = Query(None),
    max_price: Optional[float] = Query(None),
    min_seats: Optional[int] = Query(None, description="Minimum available seats"),
    available_only: bool = Query(False),
    on_date: Optional[date] = Query(None, alias="date", description="Departure day (UTC)"),
    time_frame: Optional[Literal["upcoming", "past"]] = Query(None),
    page: int = Query(1),
    page_size: int = Query(20),
) -> TripFilters:
    """Collect query parameters into a validated ``TripFilters``."""
    try:
        return TripFilters(
            origin=origin,
            destination=destination,
            min_price=min_price,
            max_price=max_price,
            min_seats=min_seats,
            available_only=available_only,
            on_date=on_date,
            time_frame=time_frame,
            page=page,
            page_size=page_size,
        )
    except ValidationError as e:
        errors = [f"{'.'.join(str(p) for p in err['loc']) or 'filters'}: {err['msg']}" for err in e.errors()]
        raise BadRequestError("; ".join(errors))


def _trip_list(trips, total: int, filters: TripFilters) -> TripListResponse:
    return TripListResponse(
        trips=[TripResponse.model_validate(t) for t in trips],
        total=total,
        page=filters.page,
        page_size=filters.page_size,
    )


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Offer a new trip. The caller becomes its driver.

    Raises:
        400: Departure not in the future
        403: Vehicle belongs to another user
        404: Vehicle not found
    """
    trip = await trip_inventory.create_trip(db, current_user["user_id"], trip_data)
    return TripResponse.model_validate(trip)


@router.get("", response_model=TripListResponse)
async def list_trips(
    filters: TripFilters = Depends(get_trip_filters),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Trips the caller drives or holds an accepted seat on."""
    trips, total = await trip_inventory.list_visible_trips(db, current_user["user_id"], filters)
    return _trip_list(trips, total, filters)


@router.get("/public", response_model=TripListResponse)
async def list_public_trips(
    filters: TripFilters = Depends(get_trip_filters),
    db: AsyncSession = Depends(get_db)
):
    """Browse open trips. Full and completed trips are not listed."""
    trips, total = await trip_inventory.list_public_trips(db, filters)
    return _trip_list(trips, total, filters)


@router.get("/public/{trip_id}", response_model=TripResponse)
async def get_public_trip(
    trip_id: int = Path(..., description="Trip ID"),
    db: AsyncSession = Depends(get_db)
):
    trip = await trip_inventory.get_public_trip(db, trip_id)
    return TripResponse.model_validate(trip)


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    The caller's visible trips split into upcoming, past pending and past
    completed.
    """
    return await trip_inventory.get_dashboard(db, current_user["user_id"])


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Trip details for its driver and accepted passengers.

    Raises:
        403: Caller cannot see this trip
        404: Trip not found
    """
    trip = await trip_inventory.get_visible_trip(db, trip_id, current_user["user_id"])
    return TripResponse.model_validate(trip)


@router.post("/{trip_id}/book", response_model=TripRequestResponse, status_code=status.HTTP_201_CREATED)
async def book_trip(
    booking: BookTrip,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Direct booking, kept for older clients.

    Opens a PENDING BOOKING request exactly like ``POST /trips/{id}/requests``.
    """
    request = await RequestStateMachine.create(
        db, trip_id, current_user["user_id"], RequestType.BOOKING, booking.seats
    )
    return TripRequestResponse.model_validate(request)
