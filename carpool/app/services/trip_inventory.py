"""
Trip inventory and visibility.

Creation, filtered listings (private and public), single-trip reads and the
dashboard split.
"""

import logging
from datetime import datetime, time, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from carpool.app.core.clock import ensure_utc, utcnow
from carpool.app.core.exceptions import BadRequestError, ResourceNotFoundError
from carpool.app.core.guards import can_view_trip, enforce, trip_visibility_clause
from carpool.app.models.trip import Trip
from carpool.app.models.vehicle import Vehicle
from carpool.app.schemas.trip import DashboardResponse, PastTrips, TripCreate, TripFilters, TripResponse

logger = logging.getLogger(__name__)


async def create_trip(db: AsyncSession, driver_id: int, data: TripCreate, now: Optional[datetime] = None) -> Trip:
    """
    Offer a new trip.

    Raises:
        BadRequestError: departure not strictly in the future
        ResourceNotFoundError: vehicle does not exist
        InsufficientPermissionsError: vehicle belongs to someone else
    """
    now = now or utcnow()
    departure_at = ensure_utc(data.departure_at)
    if departure_at <= now:
        raise BadRequestError("Departure date must be in the future")

    if data.vehicle_id is not None:
        vehicle = await db.get(Vehicle, data.vehicle_id)
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", data.vehicle_id)
        enforce(vehicle.owner_id == driver_id, "You can only offer trips with your own vehicle")

    trip = Trip(
        driver_id=driver_id,
        vehicle_id=data.vehicle_id,
        origin=data.origin.strip(),
        destination=data.destination.strip(),
        departure_at=departure_at,
        price=data.price,
        description=data.description,
        total_seats=data.seats,
        available_seats=data.seats,
        is_full=False,
    )
    db.add(trip)
    await db.commit()
    await db.refresh(trip)

    logger.info("Trip %s created by driver %s", trip.id, driver_id)
    return trip


def apply_trip_filters(query: Select, filters: TripFilters, now: datetime) -> Select:
    """Turn each set filter into a WHERE predicate."""
    if filters.origin:
        query = query.where(Trip.origin.icontains(filters.origin, autoescape=True))
    if filters.destination:
        query = query.where(Trip.destination.icontains(filters.destination, autoescape=True))
    if filters.min_price is not None:
        query = query.where(Trip.price >= filters.min_price)
    if filters.max_price is not None:
        query = query.where(Trip.price <= filters.max_price)
    if filters.min_seats is not None:
        query = query.where(Trip.available_seats >= filters.min_seats)
    if filters.available_only:
        query = query.where(Trip.is_full.is_(False), Trip.available_seats > 0)
    if filters.on_date is not None:
        day_start = datetime.combine(filters.on_date, time.min, tzinfo=timezone.utc)
        query = query.where(Trip.departure_at >= day_start, Trip.departure_at < day_start + timedelta(days=1))
    if filters.time_frame == "upcoming":
        query = query.where(Trip.departure_at > now)
    elif filters.time_frame == "past":
        query = query.where(Trip.departure_at <= now)
    return query


async def _paginate(db: AsyncSession, query: Select, filters: TripFilters) -> Tuple[List[Trip], int]:
    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()
    offset = (filters.page - 1) * filters.page_size
    result = await db.execute(
        query.order_by(Trip.departure_at, Trip.id).offset(offset).limit(filters.page_size)
    )
    return list(result.scalars().all()), total


async def list_visible_trips(
    db: AsyncSession, user_id: int, filters: TripFilters, now: Optional[datetime] = None
) -> Tuple[List[Trip], int]:
    """Trips the user drives or holds an accepted seat on, filtered."""
    query = select(Trip).where(trip_visibility_clause(user_id))
    return await _paginate(db, apply_trip_filters(query, filters, now or utcnow()), filters)


def public_trips_query() -> Select:
    return select(Trip).where(Trip.is_full.is_(False), Trip.is_completed.is_(False))


async def list_public_trips(
    db: AsyncSession, filters: TripFilters, now: Optional[datetime] = None
) -> Tuple[List[Trip], int]:
    """Open trips for anyone: no visibility rule, but full and completed trips are hidden."""
    return await _paginate(db, apply_trip_filters(public_trips_query(), filters, now or utcnow()), filters)


async def get_public_trip(db: AsyncSession, trip_id: int) -> Trip:
    result = await db.execute(public_trips_query().where(Trip.id == trip_id))
    trip = result.scalar_one_or_none()
    if not trip:
        raise ResourceNotFoundError("Trip", trip_id)
    return trip


async def get_trip_or_404(db: AsyncSession, trip_id: int) -> Trip:
    trip = await db.get(Trip, trip_id)
    if not trip:
        raise ResourceNotFoundError("Trip", trip_id)
    return trip


async def get_visible_trip(db: AsyncSession, trip_id: int, user_id: int) -> Trip:
    trip = await get_trip_or_404(db, trip_id)
    enforce(await can_view_trip(db, trip, user_id), "You do not have access to this trip")
    return trip


def categorize_trips(trips: Iterable[Trip], now: datetime) -> DashboardResponse:
    """
    Split trips for the dashboard.

    Completed trips are "past completed" whatever their date; the rest go to
    "upcoming" or "past pending" by departure time.
    """
    upcoming, pending, completed = [], [], []
    for trip in trips:
        item = TripResponse.model_validate(trip)
        if trip.is_completed:
            completed.append(item)
        elif ensure_utc(trip.departure_at) > now:
            upcoming.append(item)
        else:
            pending.append(item)
    return DashboardResponse(upcoming=upcoming, past=PastTrips(pending=pending, completed=completed))


async def get_dashboard(db: AsyncSession, user_id: int, now: Optional[datetime] = None) -> DashboardResponse:
    result = await db.execute(
        select(Trip).where(trip_visibility_clause(user_id)).order_by(Trip.departure_at, Trip.id)
    )
    return categorize_trips(result.scalars().all(), now or utcnow())
