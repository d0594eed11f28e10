"""
Chat service.

``ensure_chat`` and ``add_member`` are the side effects of an accepted
request; the remaining functions back the chat endpoints.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carpool.app.core.exceptions import ResourceNotFoundError
from carpool.app.core.guards import enforce, is_chat_member
from carpool.app.models.chat import Chat, ChatMember, Message
from carpool.app.models.enums import MessageType
from carpool.app.schemas.chat import ChatResponse, MessageResponse

logger = logging.getLogger(__name__)


async def get_chat_for_trip(db: AsyncSession, trip_id: int) -> Optional[Chat]:
    result = await db.execute(select(Chat).where(Chat.trip_id == trip_id))
    return result.scalar_one_or_none()


async def ensure_chat(db: AsyncSession, trip_id: int) -> int:
    """Get-or-create the chat of a trip and return its id."""
    chat = await get_chat_for_trip(db, trip_id)
    if chat is None:
        chat = Chat(trip_id=trip_id)
        db.add(chat)
        await db.flush()
        logger.info("Created chat %s for trip %s", chat.id, trip_id)
    return chat.id


async def add_member(db: AsyncSession, chat_id: int, user_id: int) -> None:
    """Add a member; adding an existing member is a no-op."""
    if await is_chat_member(db, chat_id, user_id):
        return
    db.add(ChatMember(chat_id=chat_id, user_id=user_id))
    await db.flush()


async def attach_participants(db: AsyncSession, trip_id: int, *user_ids: int) -> int:
    """Ensure the trip chat exists and every given user is a member of it."""
    chat_id = await ensure_chat(db, trip_id)
    for user_id in user_ids:
        await add_member(db, chat_id, user_id)
    logger.info("Chat %s members ensured: %s", chat_id, list(user_ids))
    return chat_id


async def list_member_ids(db: AsyncSession, chat_id: int) -> List[int]:
    result = await db.execute(
        select(ChatMember.user_id).where(ChatMember.chat_id == chat_id).order_by(ChatMember.id)
    )
    return list(result.scalars().all())


async def _load_member_chat(db: AsyncSession, trip_id: int, user_id: int) -> Chat:
    chat = await get_chat_for_trip(db, trip_id)
    if chat is None:
        raise ResourceNotFoundError("Chat")
    enforce(await is_chat_member(db, chat.id, user_id), "You are not a member of this chat")
    return chat


async def _chat_response(db: AsyncSession, chat: Chat) -> ChatResponse:
    result = await db.execute(
        select(Message)
        .where(Message.chat_id == chat.id)
        .order_by(Message.created_at, Message.id)
    )
    messages = [
        MessageResponse(
            id=m.id,
            sender_id=m.sender_id,
            content=m.content,
            type=m.message_type,
            metadata=m.meta,
            created_at=m.created_at,
        )
        for m in result.scalars().all()
    ]
    return ChatResponse(
        chat_id=chat.id,
        trip_id=chat.trip_id,
        member_ids=await list_member_ids(db, chat.id),
        messages=messages,
    )


async def get_chat(db: AsyncSession, trip_id: int, user_id: int) -> ChatResponse:
    chat = await _load_member_chat(db, trip_id, user_id)
    return await _chat_response(db, chat)


async def post_message(
    db: AsyncSession,
    trip_id: int,
    user_id: int,
    content: str,
    message_type: MessageType = MessageType.TEXT,
    metadata: Optional[dict] = None,
) -> ChatResponse:
    """Append a message and return the updated, ordered message list."""
    chat = await _load_member_chat(db, trip_id, user_id)
    db.add(Message(
        chat_id=chat.id,
        sender_id=user_id,
        content=content,
        message_type=message_type,
        meta=metadata,
    ))
    await db.commit()
    return await _chat_response(db, chat)
