"""
Vehicle database model.

Drivers register vehicles and may attach one of them to a trip.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from carpool.app.db.session import Base
from carpool.app.models.enums import VehicleType


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership - Vehicle belongs to a user
    owner_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    vehicle_type = Column(Enum(VehicleType), default=VehicleType.CAR, nullable=False)
    brand = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    seat_count = Column(Integer, nullable=False)
    license_plate = Column(String(32), unique=True, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, brand='{self.brand}', owner_id={self.owner_id})>"
