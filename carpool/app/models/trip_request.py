"""
Trip request database model.

A passenger's ask to book seats on, or chat about, a trip.
"""

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Enum, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from carpool.app.db.session import Base
from carpool.app.models.enums import RequestType, RequestStatus

_ACTIVE_STATUS_PREDICATE = "status IN ('PENDING', 'ACCEPTED')"


class TripRequest(Base):
    """
    Trip request model.

    Lifecycle: PENDING -> ACCEPTED | REJECTED | CANCELLED (all terminal).
    seats_requested is set for BOOKING requests only.
    """
    __tablename__ = "trip_requests"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    trip_id = Column(Integer, ForeignKey('trips.id'), nullable=False, index=True)
    requester_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    type = Column(Enum(RequestType), nullable=False)
    status = Column(Enum(RequestStatus), default=RequestStatus.PENDING, nullable=False, index=True)
    seats_requested = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    requester = relationship("User", lazy="selectin")
    trip = relationship("Trip", lazy="selectin")

    # At most one active request per (trip, requester, type)
    __table_args__ = (
        Index(
            'uq_trip_requests_active',
            'trip_id', 'requester_id', 'type',
            unique=True,
            postgresql_where=text(_ACTIVE_STATUS_PREDICATE),
            sqlite_where=text(_ACTIVE_STATUS_PREDICATE),
        ),
    )

    def __repr__(self):
        return f"<TripRequest(id={self.id}, trip_id={self.trip_id}, type='{self.type.value}', status='{self.status.value}')>"
