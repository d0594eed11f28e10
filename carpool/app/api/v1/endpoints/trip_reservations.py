"""
Trip reservation endpoints (two-sided handshake).
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from carpool.app.core.dependencies import get_current_user
from carpool.app.db.session import get_db
from carpool.app.domain.reservations.reservation_service import ReservationService
from carpool.app.schemas.common import MessageResponse
from carpool.app.schemas.reservation import (
    ReservationCompletionResponse, ReservationRequest, ReservationResponse
)
from carpool.app.schemas.trip import TripCompletionState

router = APIRouter(prefix="/trip-reservations", tags=["Trip Reservations"])


def _completion_response(reservation, trip) -> ReservationCompletionResponse:
    return ReservationCompletionResponse(
        reservation=ReservationResponse.model_validate(reservation),
        trip=TripCompletionState.model_validate(trip),
    )


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def request_reservation(
    data: ReservationRequest,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Ask the driver for a seat.

    Raises:
        403: Reserving your own trip
        404: Trip not found
        409: Trip full or already reserved
    """
    reservation = await ReservationService.request(db, data.trip_id, current_user["user_id"])
    return ReservationResponse.model_validate(reservation)


@router.post("/{reservation_id}/accept", response_model=ReservationResponse)
async def accept_reservation(
    reservation_id: int = Path(..., description="Reservation ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Driver confirms; one seat is taken and the trip chat opened."""
    reservation, chat_id = await ReservationService.accept(db, reservation_id, current_user["user_id"])
    return ReservationResponse.model_validate(reservation).model_copy(update={"chat_id": chat_id})


@router.post("/{reservation_id}/reject", response_model=MessageResponse)
async def reject_reservation(
    reservation_id: int = Path(..., description="Reservation ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await ReservationService.reject(db, reservation_id, current_user["user_id"])
    return MessageResponse(message="Reservation rejected")


@router.post("/{reservation_id}/cancel", response_model=MessageResponse)
async def cancel_reservation(
    reservation_id: int = Path(..., description="Reservation ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Cancel a confirmed reservation before departure; its seat is released.

    Raises:
        400: Not confirmed yet, or departure already passed
        403: Caller is neither passenger nor driver
    """
    await ReservationService.cancel(db, reservation_id, current_user["user_id"])
    return MessageResponse(message="Reservation cancelled")


@router.post("/{reservation_id}/complete/driver", response_model=ReservationCompletionResponse)
async def complete_as_driver(
    reservation_id: int = Path(..., description="Reservation ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    reservation, trip = await ReservationService.complete_by_driver(db, reservation_id, current_user["user_id"])
    return _completion_response(reservation, trip)


@router.post("/{reservation_id}/complete/passenger", response_model=ReservationCompletionResponse)
async def complete_as_passenger(
    reservation_id: int = Path(..., description="Reservation ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    reservation, trip = await ReservationService.complete_by_passenger(
        db, reservation_id, current_user["user_id"]
    )
    return _completion_response(reservation, trip)
