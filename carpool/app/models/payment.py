"""
Payment database model.

Record-keeping only: a payment is created per booking intent and starts in
NOT_STARTED. No processor drives the later statuses.
"""

from sqlalchemy import CheckConstraint, Column, Integer, ForeignKey, DateTime, Enum, Float, String
from sqlalchemy.sql import func
from carpool.app.db.session import Base
from carpool.app.models.enums import PaymentStatus


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    trip_id = Column(Integer, ForeignKey('trips.id'), nullable=False, index=True)
    payer_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    request_id = Column(Integer, ForeignKey('trip_requests.id'), nullable=True, index=True)

    amount = Column(Float, nullable=False)
    status = Column(Enum(PaymentStatus), default=PaymentStatus.NOT_STARTED, nullable=False)
    provider_ref = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_payments_amount_non_negative"),
    )

    def __repr__(self):
        return f"<Payment(id={self.id}, trip_id={self.trip_id}, status='{self.status.value}')>"
