"""
Trip reservation database model.

Two-sided handshake: the passenger asks (passenger_accepted) and the driver
agrees (driver_accepted). Rows are deleted on rejection or cancellation.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from carpool.app.db.session import Base


class TripReservation(Base):
    __tablename__ = "trip_reservations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    trip_id = Column(Integer, ForeignKey('trips.id'), nullable=False, index=True)
    passenger_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    passenger_accepted = Column(Boolean, default=True, nullable=False)
    driver_accepted = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    trip = relationship("Trip", lazy="selectin")

    __table_args__ = (
        UniqueConstraint('trip_id', 'passenger_id', name='uq_trip_reservations_trip_passenger'),
    )

    @property
    def is_confirmed(self) -> bool:
        return bool(self.passenger_accepted and self.driver_accepted)

    def __repr__(self):
        return f"<TripReservation(id={self.id}, trip_id={self.trip_id}, confirmed={self.is_confirmed})>"
