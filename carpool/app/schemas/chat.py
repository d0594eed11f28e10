"""
Chat schemas.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from carpool.app.models.enums import MessageType
from carpool.app.schemas.common import UTCDateTime


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=4000)
    type: MessageType = MessageType.TEXT
    metadata: Optional[Dict[str, Any]] = None


class MessageResponse(BaseModel):
    id: int
    sender_id: int
    content: str
    type: MessageType
    metadata: Optional[Dict[str, Any]]
    created_at: UTCDateTime


class ChatResponse(BaseModel):
    chat_id: int
    trip_id: int
    member_ids: List[int]
    messages: List[MessageResponse]
