"""
Trip database model.

A trip is a ride offered by a driver with a fixed seat capacity.
"""

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String, Text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from carpool.app.db.session import Base


class Trip(Base):
    """
    Trip model.

    Seat inventory invariants (also enforced by check constraints):
        0 <= available_seats <= total_seats
        is_full == (available_seats == 0)
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership - Trip belongs to its driver
    driver_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=True, index=True)

    # Route
    origin = Column(String(255), nullable=False, index=True)
    destination = Column(String(255), nullable=False, index=True)
    departure_at = Column(DateTime(timezone=True), nullable=False, index=True)
    price = Column(Float, nullable=False)
    description = Column(Text, nullable=True)

    # Seat inventory
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    is_full = Column(Boolean, default=False, nullable=False)

    # Completion (each side confirms independently)
    completed_by_driver = Column(Boolean, default=False, nullable=False)
    completed_by_passenger = Column(Boolean, default=False, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    driver = relationship("User", lazy="selectin")
    vehicle = relationship("Vehicle", lazy="selectin")

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_trips_price_non_negative"),
        CheckConstraint("total_seats >= 1", name="ck_trips_total_seats_positive"),
        CheckConstraint("available_seats >= 0", name="ck_trips_available_seats_non_negative"),
        CheckConstraint("available_seats <= total_seats", name="ck_trips_available_within_total"),
    )

    def __repr__(self):
        return f"<Trip(id={self.id}, {self.origin} -> {self.destination}, seats={self.available_seats}/{self.total_seats})>"
