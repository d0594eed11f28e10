"""
Trip Request State Machine (Domain Logic).

    PENDING -> ACCEPTED | REJECTED | CANCELLED

All three right-hand states are terminal. Accepting is the only transition
with side effects and runs as a single transaction:

1. Re-read (and lock) the trip row, then the request, and re-check PENDING
2. For BOOKING: reject if full / not enough seats, else decrement seats
3. Get-or-create the trip chat
4. Add requester and trip owner to the chat (idempotent)
5. Mark the request ACCEPTED
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carpool.app.core.exceptions import BadRequestError, ConflictError, ResourceNotFoundError
from carpool.app.core.guards import enforce, enforce_request_action, is_trip_owner
from carpool.app.db.session import get_for_update
from carpool.app.models.enums import (
    ACTIVE_REQUEST_STATUSES, RequestAction, RequestStatus, RequestType
)
from carpool.app.models.trip import Trip
from carpool.app.models.trip_request import TripRequest
from carpool.app.services.chat_service import attach_participants
from carpool.app.services.seat_inventory import lock_trip, reserve_seats

logger = logging.getLogger(__name__)

ACTION_TARGET_STATUS = {
    RequestAction.ACCEPT: RequestStatus.ACCEPTED,
    RequestAction.REJECT: RequestStatus.REJECTED,
    RequestAction.CANCEL: RequestStatus.CANCELLED,
}


class RequestStateMachine:

    @staticmethod
    async def create(
        db: AsyncSession,
        trip_id: int,
        requester_id: int,
        request_type: RequestType,
        seats_requested: Optional[int] = None,
    ) -> TripRequest:
        """
        Open a new PENDING request.

        Raises:
            ResourceNotFoundError: trip does not exist
            InsufficientPermissionsError: requester owns the trip
            BadRequestError: BOOKING without a positive seat count
            ConflictError: trip full, not enough seats, or an active duplicate
        """
        logger.info("Creating %s request for trip %s by user %s", request_type.value, trip_id, requester_id)

        trip = await db.get(Trip, trip_id)
        if not trip:
            raise ResourceNotFoundError("Trip", trip_id)

        enforce(not is_trip_owner(trip, requester_id), "Cannot request your own trip")

        if request_type == RequestType.BOOKING:
            if not seats_requested or seats_requested < 1:
                raise BadRequestError(
                    "Seats requested is required and must be at least 1 for BOOKING requests"
                )
            if trip.is_full:
                raise ConflictError("Trip is already full")
            if seats_requested > trip.available_seats:
                raise ConflictError(f"Only {trip.available_seats} seats available")

        existing = await db.execute(
            select(TripRequest.id).where(
                TripRequest.trip_id == trip_id,
                TripRequest.requester_id == requester_id,
                TripRequest.type == request_type,
                TripRequest.status.in_(ACTIVE_REQUEST_STATUSES),
            )
        )
        if existing.first() is not None:
            raise ConflictError(f"You already have an active {request_type.value} request for this trip")

        request = TripRequest(
            trip_id=trip_id,
            requester_id=requester_id,
            type=request_type,
            status=RequestStatus.PENDING,
            seats_requested=seats_requested if request_type == RequestType.BOOKING else None,
        )
        db.add(request)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race against an identical request; the partial unique index caught it
            await db.rollback()
            raise ConflictError(f"You already have an active {request_type.value} request for this trip")
        await db.refresh(request)

        logger.info("Request %s created", request.id)
        return request

    @staticmethod
    async def list_for_trip(db: AsyncSession, trip_id: int, user_id: int) -> List[TripRequest]:
        """All requests of a trip, newest first. Trip owner only."""
        trip = await db.get(Trip, trip_id)
        if not trip:
            raise ResourceNotFoundError("Trip", trip_id)
        enforce(is_trip_owner(trip, user_id), "Only trip owner can view requests")

        result = await db.execute(
            select(TripRequest)
            .where(TripRequest.trip_id == trip_id)
            .order_by(TripRequest.created_at.desc(), TripRequest.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def transition(
        db: AsyncSession,
        request_id: int,
        user_id: int,
        action: RequestAction,
    ) -> Tuple[TripRequest, Optional[int]]:
        """
        Apply ACCEPT / REJECT / CANCEL to a request.

        Returns:
            (updated request, chat id when accepted else None)
        """
        logger.info("User %s attempting to %s request %s", user_id, action.value, request_id)

        request = await db.get(TripRequest, request_id)
        if not request:
            raise ResourceNotFoundError("Request", request_id)

        enforce_request_action(request, user_id, action)

        new_status = ACTION_TARGET_STATUS[action]
        chat_id = None

        try:
            # Trip first, then request: every transition locks in this order
            trip = await lock_trip(db, request.trip_id)
            request = await get_for_update(db, TripRequest, request_id)
            if request.status != RequestStatus.PENDING:
                raise ConflictError(f"Cannot {action.value} request with status {request.status.value}")

            if action == RequestAction.ACCEPT:
                chat_id = await RequestStateMachine._apply_acceptance(db, request, trip)
            request.status = new_status
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(request)
        logger.info("Request %s updated to %s", request_id, new_status.value)
        return request, chat_id

    @staticmethod
    async def _apply_acceptance(db: AsyncSession, request: TripRequest, trip: Trip) -> int:
        """Seat and chat side effects of ACCEPT on the locked trip; caller owns the transaction."""
        if request.type == RequestType.BOOKING:
            if not request.seats_requested:
                raise BadRequestError("Invalid booking request: missing seats")
            reserve_seats(trip, request.seats_requested)

        return await attach_participants(db, trip.id, request.requester_id, trip.driver_id)
