"""
Payment record endpoints.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from carpool.app.core.dependencies import get_current_user
from carpool.app.db.session import get_db
from carpool.app.domain.payments.payment_service import PaymentService
from carpool.app.schemas.payment import PaymentCreate, PaymentResponse

router = APIRouter(tags=["Payments"])


@router.post(
    "/trips/{trip_id}/payments",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_payment(
    payment_data: PaymentCreate,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a payment intent for a trip.

    Raises:
        403: request_id belongs to another user or another trip
        404: Trip or request not found
    """
    payment = await PaymentService.create_payment(
        db,
        trip_id,
        current_user["user_id"],
        payment_data.amount,
        request_id=payment_data.request_id,
    )
    return PaymentResponse.model_validate(payment)


@router.get("/payments/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: int = Path(..., description="Payment ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Visible to the payer and to the trip's driver."""
    payment = await PaymentService.get_payment(db, payment_id, current_user["user_id"])
    return PaymentResponse.model_validate(payment)
