"""
Enumerations shared by models and schemas.
"""

import enum


class VehicleType(str, enum.Enum):
    """Vehicle type enumeration."""
    CAR = "CAR"
    MOTORCYCLE = "MOTORCYCLE"
    VAN = "VAN"


class RequestType(str, enum.Enum):
    """
    Trip request type.

    BOOKING asks for seats; CHAT only asks to join the trip conversation.
    """
    BOOKING = "BOOKING"
    CHAT = "CHAT"


class RequestStatus(str, enum.Enum):
    """Trip request status. Everything except PENDING is terminal."""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


ACTIVE_REQUEST_STATUSES = (RequestStatus.PENDING, RequestStatus.ACCEPTED)


class RequestAction(str, enum.Enum):
    """Actions that move a PENDING request to a terminal status."""
    ACCEPT = "ACCEPT"
    REJECT = "REJECT"
    CANCEL = "CANCEL"


class MessageType(str, enum.Enum):
    """Chat message content type."""
    TEXT = "TEXT"
    IMAGE = "IMAGE"
    LOCATION = "LOCATION"


class PaymentStatus(str, enum.Enum):
    """Payment status. Only NOT_STARTED is written; the rest await a processor."""
    NOT_STARTED = "NOT_STARTED"
    STARTED = "STARTED"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class CompletionSide(str, enum.Enum):
    """Which party marks a reservation's trip as completed."""
    DRIVER = "DRIVER"
    PASSENGER = "PASSENGER"
