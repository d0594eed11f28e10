"""
Seat inventory for trips.

All seat changes go through here and run inside the caller's transaction,
after the trip row has been re-read with ``lock_trip``.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from carpool.app.core.exceptions import ConflictError, ResourceNotFoundError
from carpool.app.db.session import get_for_update
from carpool.app.models.trip import Trip

logger = logging.getLogger(__name__)


async def lock_trip(db: AsyncSession, trip_id: int) -> Trip:
    """
    Re-read a trip with its row lock.

    Concurrent seat changes on the same trip serialize here until the
    surrounding transaction ends. Lock the trip before the request or
    reservation that touches it.
    """
    trip = await get_for_update(db, Trip, trip_id)
    if not trip:
        raise ResourceNotFoundError("Trip", trip_id)
    return trip


def reserve_seats(trip: Trip, seats: int) -> None:
    """Take ``seats`` from a freshly locked trip or raise a conflict."""
    if trip.is_full:
        raise ConflictError("Trip is now full")
    if seats > trip.available_seats:
        raise ConflictError(f"Only {trip.available_seats} seats available now")

    trip.available_seats -= seats
    trip.is_full = trip.available_seats == 0
    logger.info("Reserved %d seats on trip %s (%d left)", seats, trip.id, trip.available_seats)


def release_seats(trip: Trip, seats: int) -> None:
    """Give ``seats`` back to a freshly locked trip, never beyond its capacity."""
    trip.available_seats = min(trip.total_seats, trip.available_seats + seats)
    trip.is_full = trip.available_seats == 0
    logger.info("Released %d seats on trip %s (%d left)", seats, trip.id, trip.available_seats)
