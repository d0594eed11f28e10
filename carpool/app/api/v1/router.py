"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from carpool.app.api.v1.endpoints import (
    auth, users, vehicles, trips, trip_requests, trip_reservations, chats, payments
)

router = APIRouter()

# Authentication and profile
router.include_router(auth.router)
router.include_router(users.router)

router.include_router(vehicles.router)

# Trips, requests, reservations and chat
router.include_router(trips.router)
router.include_router(trip_requests.router)
router.include_router(trip_reservations.router)
router.include_router(chats.router)

router.include_router(payments.router)
