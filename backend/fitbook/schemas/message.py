# backend/fitbook/schemas/message.py
"""Message request and response schemas."""

from typing import Optional

from pydantic import Field

from ..core.constants import MAX_MESSAGE_LENGTH
from ._strict_base import StrictModel, StrictRequestModel


class MessageCreate(StrictRequestModel):
    recipient_id: str
    content: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)


class MessageResponse(StrictModel):
    id: str
    conversation_id: str
    sender_id: str
    recipient_id: str
    content: str
    is_read: bool
    created_at: Optional[str] = None


class UnreadCountResponse(StrictModel):
    user_id: str
    unread_count: int


class MarkReadResponse(StrictModel):
    conversation_id: str
    marked_read: int


class ConversationSummaryResponse(StrictModel):
    id: str
    other_user_id: str
    linked_booking_id: Optional[str] = None
    last_activity_at: Optional[str] = None
