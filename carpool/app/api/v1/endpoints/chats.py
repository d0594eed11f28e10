"""
Trip chat endpoints. Members only.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from carpool.app.core.dependencies import get_current_user
from carpool.app.db.session import get_db
from carpool.app.schemas.chat import ChatResponse, MessageCreate
from carpool.app.services import chat_service

router = APIRouter(prefix="/trips/{trip_id}/chat", tags=["Chat"])


@router.get("", response_model=ChatResponse)
async def get_trip_chat(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Chat of a trip with its messages, oldest first.

    Raises:
        403: Caller is not a member
        404: No chat yet (no request has been accepted)
    """
    return await chat_service.get_chat(db, trip_id, current_user["user_id"])


@router.post("/messages", response_model=ChatResponse, status_code=status.HTTP_201_CREATED)
async def post_chat_message(
    message: MessageCreate,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Append a message and return the updated chat."""
    return await chat_service.post_message(
        db,
        trip_id,
        current_user["user_id"],
        message.content,
        message_type=message.type,
        metadata=message.metadata,
    )
