"""
Trip Reservation Service (Domain Logic).

Two-sided handshake used by ``/trip-reservations``:

    request (passenger) -> accept (driver) -> confirmed
                        -> reject (driver)  -> deleted
    confirmed           -> cancel (either)  -> deleted, seat returned

A confirmed reservation always holds exactly one seat. Completion flags are
set on the trip through a confirmed reservation once departure has passed.
"""

import logging
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carpool.app.core.clock import ensure_utc, utcnow
from carpool.app.core.exceptions import BadRequestError, ConflictError, ResourceNotFoundError
from carpool.app.core.guards import (
    enforce, is_reservation_participant, is_reservation_passenger, is_trip_owner
)
from carpool.app.db.session import get_for_update
from carpool.app.models.enums import CompletionSide
from carpool.app.models.trip import Trip
from carpool.app.models.trip_reservation import TripReservation
from carpool.app.services.chat_service import attach_participants
from carpool.app.services.seat_inventory import lock_trip, release_seats, reserve_seats

logger = logging.getLogger(__name__)

RESERVATION_SEATS = 1


class ReservationService:

    @staticmethod
    async def _get(db: AsyncSession, reservation_id: int) -> TripReservation:
        reservation = await db.get(TripReservation, reservation_id)
        if not reservation:
            raise ResourceNotFoundError("Reservation", reservation_id)
        return reservation

    @staticmethod
    async def _lock(db: AsyncSession, reservation: TripReservation) -> Tuple[Trip, TripReservation]:
        """
        Lock the reservation's trip, then re-read the reservation itself.

        Checks made on the unlocked copy may be stale; callers re-check on
        what this returns. A reservation deleted meanwhile is not found.
        """
        reservation_id = reservation.id
        trip = await lock_trip(db, reservation.trip_id)
        locked = await get_for_update(db, TripReservation, reservation_id)
        if not locked:
            raise ResourceNotFoundError("Reservation", reservation_id)
        return trip, locked

    @staticmethod
    async def request(db: AsyncSession, trip_id: int, passenger_id: int) -> TripReservation:
        """
        Passenger asks for a seat.

        Raises:
            ResourceNotFoundError: trip does not exist
            InsufficientPermissionsError: passenger owns the trip
            ConflictError: trip full or already reserved by this passenger
        """
        trip = await db.get(Trip, trip_id)
        if not trip:
            raise ResourceNotFoundError("Trip", trip_id)

        enforce(not is_trip_owner(trip, passenger_id), "Cannot reserve your own trip")
        if trip.is_full:
            raise ConflictError("Trip is already full")

        existing = await db.execute(
            select(TripReservation.id).where(
                TripReservation.trip_id == trip_id,
                TripReservation.passenger_id == passenger_id,
            )
        )
        if existing.first() is not None:
            raise ConflictError("You already have a reservation for this trip")

        reservation = TripReservation(
            trip_id=trip_id,
            passenger_id=passenger_id,
            passenger_accepted=True,
            driver_accepted=False,
        )
        db.add(reservation)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("You already have a reservation for this trip")
        await db.refresh(reservation)

        logger.info("Reservation %s requested on trip %s by user %s", reservation.id, trip_id, passenger_id)
        return reservation

    @staticmethod
    async def accept(db: AsyncSession, reservation_id: int, user_id: int) -> Tuple[TripReservation, int]:
        """
        Driver confirms a reservation.

        Takes one seat and opens the trip chat in the same transaction.

        Returns:
            (confirmed reservation, chat id)
        """
        reservation = await ReservationService._get(db, reservation_id)
        enforce(is_trip_owner(reservation.trip, user_id), "Only trip owner can accept reservations")

        try:
            trip, reservation = await ReservationService._lock(db, reservation)
            if reservation.is_confirmed:
                raise ConflictError("Reservation is already confirmed")
            reserve_seats(trip, RESERVATION_SEATS)
            chat_id = await attach_participants(db, trip.id, reservation.passenger_id, trip.driver_id)
            reservation.driver_accepted = True
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(reservation)
        logger.info("Reservation %s confirmed", reservation_id)
        return reservation, chat_id

    @staticmethod
    async def reject(db: AsyncSession, reservation_id: int, user_id: int) -> None:
        """Driver turns down a pending reservation; the row is deleted."""
        reservation = await ReservationService._get(db, reservation_id)
        enforce(is_trip_owner(reservation.trip, user_id), "Only trip owner can reject reservations")

        try:
            _, reservation = await ReservationService._lock(db, reservation)
            if reservation.is_confirmed:
                raise ConflictError("Confirmed reservations cannot be rejected; cancel instead")
            await db.delete(reservation)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Reservation %s rejected", reservation_id)

    @staticmethod
    async def cancel(
        db: AsyncSession, reservation_id: int, user_id: int, now: Optional[datetime] = None
    ) -> None:
        """
        Either party cancels a confirmed reservation before departure.

        The seat goes back to the trip in the same transaction as the delete.
        """
        reservation = await ReservationService._get(db, reservation_id)
        enforce(
            is_reservation_participant(reservation, user_id),
            "Only the passenger or the driver can cancel this reservation",
        )

        try:
            trip, reservation = await ReservationService._lock(db, reservation)
            if not reservation.is_confirmed:
                raise BadRequestError("Only confirmed reservations can be cancelled")
            if ensure_utc(trip.departure_at) <= (now or utcnow()):
                raise BadRequestError("Cannot cancel a reservation after departure")
            release_seats(trip, RESERVATION_SEATS)
            await db.delete(reservation)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Reservation %s cancelled by user %s", reservation_id, user_id)

    @staticmethod
    async def complete_by_driver(
        db: AsyncSession, reservation_id: int, user_id: int, now: Optional[datetime] = None
    ) -> Tuple[TripReservation, Trip]:
        reservation = await ReservationService._get(db, reservation_id)
        enforce(is_trip_owner(reservation.trip, user_id), "Only the driver can complete this trip as driver")
        return await ReservationService._mark_completed(db, reservation, CompletionSide.DRIVER, now)

    @staticmethod
    async def complete_by_passenger(
        db: AsyncSession, reservation_id: int, user_id: int, now: Optional[datetime] = None
    ) -> Tuple[TripReservation, Trip]:
        reservation = await ReservationService._get(db, reservation_id)
        enforce(
            is_reservation_passenger(reservation, user_id),
            "Only the passenger can complete this trip as passenger",
        )
        return await ReservationService._mark_completed(db, reservation, CompletionSide.PASSENGER, now)

    @staticmethod
    async def _mark_completed(
        db: AsyncSession, reservation: TripReservation, side: CompletionSide, now: Optional[datetime]
    ) -> Tuple[TripReservation, Trip]:
        """
        Set one completion flag on the trip.

        The trip counts as completed once both the driver and passenger flags
        are set, in whichever order.
        """
        try:
            trip, reservation = await ReservationService._lock(db, reservation)
            if ensure_utc(trip.departure_at) > (now or utcnow()):
                raise BadRequestError("Trip date has not passed yet")
            if not reservation.is_confirmed:
                raise BadRequestError("Reservation must be mutually accepted to complete")

            if side == CompletionSide.DRIVER:
                trip.completed_by_driver = True
            else:
                trip.completed_by_passenger = True
            trip.is_completed = bool(trip.completed_by_driver and trip.completed_by_passenger)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(trip)
        await db.refresh(reservation)
        logger.info(
            "Trip %s completion by %s recorded (completed=%s)", trip.id, side.value, trip.is_completed
        )
        return reservation, trip
