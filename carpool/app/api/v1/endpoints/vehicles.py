"""
Vehicle endpoints.

Users register the vehicles they drive; trips may reference one of them.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carpool.app.core.dependencies import get_current_user
from carpool.app.core.exceptions import ConflictError
from carpool.app.db.session import get_db
from carpool.app.models.vehicle import Vehicle
from carpool.app.schemas.vehicle import VehicleCreate, VehicleListResponse, VehicleResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a vehicle for the current user.

    Raises:
        409: License plate already registered
    """
    plate = vehicle_data.license_plate.strip().upper() if vehicle_data.license_plate else None
    if plate:
        result = await db.execute(select(Vehicle.id).where(Vehicle.license_plate == plate))
        if result.first() is not None:
            raise ConflictError("License plate already registered")

    vehicle = Vehicle(
        owner_id=current_user["user_id"],
        vehicle_type=vehicle_data.vehicle_type,
        brand=vehicle_data.brand,
        model=vehicle_data.model,
        seat_count=vehicle_data.seat_count,
        license_plate=plate,
    )
    db.add(vehicle)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("License plate already registered")
    await db.refresh(vehicle)

    logger.info("Vehicle %s registered by user %s", vehicle.id, current_user["user_id"])
    return VehicleResponse.model_validate(vehicle)


@router.get("", response_model=VehicleListResponse)
async def list_vehicles(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List the current user's vehicles."""
    result = await db.execute(
        select(Vehicle).where(Vehicle.owner_id == current_user["user_id"]).order_by(Vehicle.id)
    )
    vehicles = result.scalars().all()
    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(v) for v in vehicles],
        total=len(vehicles),
    )
