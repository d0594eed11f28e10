"""
Authorization guards.

Every "who may do this" rule in the app lives here, one predicate per action,
so handlers and services never inline their own ownership checks.
"""

from typing import Callable, Dict

from sqlalchemy import and_, exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from carpool.app.core.exceptions import InsufficientPermissionsError
from carpool.app.models.chat import ChatMember
from carpool.app.models.enums import RequestAction, RequestStatus
from carpool.app.models.trip import Trip
from carpool.app.models.trip_request import TripRequest
from carpool.app.models.trip_reservation import TripReservation


def is_trip_owner(trip: Trip, user_id: int) -> bool:
    return trip.driver_id == user_id


def is_requester(request: TripRequest, user_id: int) -> bool:
    return request.requester_id == user_id


def is_reservation_passenger(reservation: TripReservation, user_id: int) -> bool:
    return reservation.passenger_id == user_id


def is_reservation_participant(reservation: TripReservation, user_id: int) -> bool:
    return reservation.passenger_id == user_id or reservation.trip.driver_id == user_id


# Who may perform each request transition
REQUEST_ACTION_RULES: Dict[RequestAction, Callable[[TripRequest, int], bool]] = {
    RequestAction.ACCEPT: lambda request, user_id: is_trip_owner(request.trip, user_id),
    RequestAction.REJECT: lambda request, user_id: is_trip_owner(request.trip, user_id),
    RequestAction.CANCEL: is_requester,
}

REQUEST_ACTION_DENIALS: Dict[RequestAction, str] = {
    RequestAction.ACCEPT: "Only trip owner can accept/reject requests",
    RequestAction.REJECT: "Only trip owner can accept/reject requests",
    RequestAction.CANCEL: "Only requester can cancel their request",
}


def enforce(allowed: bool, message: str) -> None:
    """Raise 403 with ``message`` unless ``allowed``."""
    if not allowed:
        raise InsufficientPermissionsError(message)


def enforce_request_action(request: TripRequest, user_id: int, action: RequestAction) -> None:
    enforce(REQUEST_ACTION_RULES[action](request, user_id), REQUEST_ACTION_DENIALS[action])


def trip_visibility_clause(user_id: int):
    """
    SQL predicate: the trip is visible to ``user_id``.

    Visible to the driver, to holders of an ACCEPTED request and to holders of
    a confirmed reservation.
    """
    accepted_request = exists().where(
        TripRequest.trip_id == Trip.id,
        TripRequest.requester_id == user_id,
        TripRequest.status == RequestStatus.ACCEPTED,
    )
    confirmed_reservation = exists().where(
        TripReservation.trip_id == Trip.id,
        TripReservation.passenger_id == user_id,
        and_(
            TripReservation.passenger_accepted.is_(True),
            TripReservation.driver_accepted.is_(True),
        ),
    )
    return or_(Trip.driver_id == user_id, accepted_request, confirmed_reservation)


async def can_view_trip(db: AsyncSession, trip: Trip, user_id: int) -> bool:
    if is_trip_owner(trip, user_id):
        return True
    result = await db.execute(
        select(Trip.id).where(Trip.id == trip.id, trip_visibility_clause(user_id))
    )
    return result.scalar_one_or_none() is not None


async def is_chat_member(db: AsyncSession, chat_id: int, user_id: int) -> bool:
    result = await db.execute(
        select(ChatMember.id).where(ChatMember.chat_id == chat_id, ChatMember.user_id == user_id)
    )
    return result.scalar_one_or_none() is not None
