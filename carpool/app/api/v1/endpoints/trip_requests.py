"""
Trip request endpoints.

Passengers open BOOKING / CHAT requests on a trip; the trip owner accepts or
rejects them and the requester may cancel while they are PENDING.
"""

from typing import List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from carpool.app.core.dependencies import get_current_user
from carpool.app.db.session import get_db
from carpool.app.domain.reservations.request_state_machine import RequestStateMachine
from carpool.app.schemas.trip_request import TripRequestCreate, TripRequestResponse, TripRequestUpdate

router = APIRouter(tags=["Trip Requests"])


@router.post(
    "/trips/{trip_id}/requests",
    response_model=TripRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_trip_request(
    request_data: TripRequestCreate,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Ask to join a trip.

    Raises:
        400: BOOKING without seats_requested
        403: Requesting your own trip
        404: Trip not found
        409: Trip full, not enough seats, or an active request of the same type exists
    """
    request = await RequestStateMachine.create(
        db,
        trip_id,
        current_user["user_id"],
        request_data.type,
        request_data.seats_requested,
    )
    return TripRequestResponse.model_validate(request)


@router.get("/trips/{trip_id}/requests", response_model=List[TripRequestResponse])
async def list_trip_requests(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """All requests on the trip, newest first (trip owner only)."""
    requests = await RequestStateMachine.list_for_trip(db, trip_id, current_user["user_id"])
    return [TripRequestResponse.model_validate(r) for r in requests]


@router.patch("/requests/{request_id}", response_model=TripRequestResponse)
async def update_trip_request(
    update: TripRequestUpdate,
    request_id: int = Path(..., description="Request ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Accept, reject or cancel a PENDING request.

    Accepting a BOOKING takes the seats and opens the trip chat atomically;
    the response then carries ``chat_id``.

    Raises:
        403: Caller may not perform this action
        404: Request not found
        409: Request already settled, or not enough seats left
    """
    request, chat_id = await RequestStateMachine.transition(
        db, request_id, current_user["user_id"], update.action
    )
    response = TripRequestResponse.model_validate(request)
    if chat_id is not None:
        response = response.model_copy(update={"chat_id": chat_id})
    return response
