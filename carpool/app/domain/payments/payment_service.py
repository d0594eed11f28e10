"""
Payment Service (Domain Logic).

Payments are records of intent only. They are created in NOT_STARTED and no
code path moves them further.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from carpool.app.core.exceptions import ResourceNotFoundError
from carpool.app.core.guards import enforce, is_trip_owner
from carpool.app.models.enums import PaymentStatus
from carpool.app.models.payment import Payment
from carpool.app.models.trip import Trip
from carpool.app.models.trip_request import TripRequest

logger = logging.getLogger(__name__)


class PaymentService:

    @staticmethod
    async def create_payment(
        db: AsyncSession,
        trip_id: int,
        payer_id: int,
        amount: float,
        request_id: Optional[int] = None,
    ) -> Payment:
        """
        Record a payment for a trip.

        Args:
            db: Database session
            trip_id: Trip being paid for
            payer_id: Authenticated user
            amount: Non-negative amount
            request_id: Optional booking request the payment settles

        Returns:
            Created Payment in NOT_STARTED
        """
        trip = await db.get(Trip, trip_id)
        if not trip:
            raise ResourceNotFoundError("Trip", trip_id)

        if request_id is not None:
            request = await db.get(TripRequest, request_id)
            if not request:
                raise ResourceNotFoundError("Request", request_id)
            enforce(request.requester_id == payer_id, "Request does not belong to you")
            enforce(request.trip_id == trip_id, "Request does not belong to this trip")

        payment = Payment(
            trip_id=trip_id,
            payer_id=payer_id,
            request_id=request_id,
            amount=amount,
            status=PaymentStatus.NOT_STARTED,
        )
        db.add(payment)
        await db.commit()
        await db.refresh(payment)

        logger.info("Payment %s recorded for trip %s by user %s", payment.id, trip_id, payer_id)
        return payment

    @staticmethod
    async def get_payment(db: AsyncSession, payment_id: int, user_id: int) -> Payment:
        """Readable by the payer and by the owner of the paid trip."""
        payment = await db.get(Payment, payment_id)
        if not payment:
            raise ResourceNotFoundError("Payment", payment_id)

        if payment.payer_id != user_id:
            trip = await db.get(Trip, payment.trip_id)
            enforce(trip is not None and is_trip_owner(trip, user_id), "You cannot view this payment")
        return payment
