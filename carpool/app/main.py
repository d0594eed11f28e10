"""
FastAPI Application Entry Point.

This is the main application file for the Carpool Backend.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from sqlalchemy.ext.asyncio import AsyncSession
from carpool.app.core.clock import utcnow
from carpool.app.core.config import settings
from carpool.app.core.logging_config import configure_logging
from carpool.app.core.observability import ObservabilityMiddleware
from carpool.app.core.rate_limit import limiter, rate_limit_exceeded_handler
from carpool.app.core.redis_client import close_redis
from carpool.app.api.v1.router import router as api_v1_router
from carpool.app.db.session import engine, get_db, ping_database, connect_database_with_retry
from carpool.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from carpool.app.models.user import User
from carpool.app.models.vehicle import Vehicle
from carpool.app.models.trip import Trip
from carpool.app.models.trip_request import TripRequest
from carpool.app.models.trip_reservation import TripReservation
from carpool.app.models.chat import Chat, ChatMember, Message
from carpool.app.models.payment import Payment

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging.
    2. Connects to the database in the background (startup never blocks on it).
    3. Disposes the connection pool and closes Redis on shutdown.
    """
    configure_logging(settings.log_level)
    logger.info("Starting %s (%s)", settings.app_name, settings.api_version)
    db_task = asyncio.create_task(connect_database_with_retry())
    yield
    if not db_task.done():
        db_task.cancel()
        try:
            await db_task
        except asyncio.CancelledError:
            pass
    await engine.dispose()
    await close_redis()
    logger.info("Shutdown complete")


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Ride-sharing backend: trips, seat requests, trip chat and payment records",
    lifespan=lifespan,
)

app.state.limiter = limiter

app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint.

    Returns:
        dict: Status, database connectivity and application information
    """
    database_ok = await ping_database(db)
    return {
        "status": "ok" if database_ok else "degraded",
        "database": "connected" if database_ok else "disconnected",
        "timestamp": utcnow().isoformat(),
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to Carpool Backend API",
        "docs": "/docs",
        "health": "/health",
    }
