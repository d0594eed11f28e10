"""
Current user profile.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from carpool.app.api.v1.endpoints.auth import read_current_user
from carpool.app.core.dependencies import get_current_user
from carpool.app.db.session import get_db
from carpool.app.schemas.auth import UserResponse

router = APIRouter(tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Same payload as ``/auth/me``."""
    return await read_current_user(current_user, db)
