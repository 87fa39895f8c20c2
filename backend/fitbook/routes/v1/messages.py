# backend/fitbook/routes/v1/messages.py
"""
Message routes - API v1

Endpoints:
    POST / - Send a message (opens the conversation on first contact)
    GET /unread-count - Unread messages for the caller
    GET /conversations - Threads the caller takes part in, most recent first
    GET /conversations/{conversation_id} - Message history
    POST /conversations/{conversation_id}/read - Mark the thread read
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import get_identity, get_message_service
from ...core.exceptions import DomainException
from ...core.identity import Identity, require_identity
from ...schemas.message import (
    ConversationSummaryResponse,
    MarkReadResponse,
    MessageCreate,
    MessageResponse,
    UnreadCountResponse,
)
from ...services.message_service import MessageService
from ._errors import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["messages-v1"])


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    payload: MessageCreate,
    identity: Optional[Identity] = Depends(get_identity),
    message_service: MessageService = Depends(get_message_service),
) -> MessageResponse:
    try:
        message = await asyncio.to_thread(
            message_service.send_message, identity, payload.recipient_id, payload.content
        )
    except DomainException as e:
        handle_domain_exception(e)
    return MessageResponse(**message.to_dict())


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    identity: Optional[Identity] = Depends(get_identity),
    message_service: MessageService = Depends(get_message_service),
) -> UnreadCountResponse:
    try:
        user = require_identity(identity)
        count = await asyncio.to_thread(message_service.get_unread_count, user.user_id)
    except DomainException as e:
        handle_domain_exception(e)
    return UnreadCountResponse(user_id=user.user_id, unread_count=count)


@router.get("/conversations", response_model=List[ConversationSummaryResponse])
async def list_conversations(
    limit: int = Query(50, ge=1, le=200),
    identity: Optional[Identity] = Depends(get_identity),
    message_service: MessageService = Depends(get_message_service),
) -> List[ConversationSummaryResponse]:
    try:
        user = require_identity(identity)
        conversations = await asyncio.to_thread(
            message_service.list_conversations, identity, limit
        )
    except DomainException as e:
        handle_domain_exception(e)
    return [
        ConversationSummaryResponse(
            id=conversation.id,
            other_user_id=conversation.get_other_user_id(user.user_id),
            linked_booking_id=conversation.linked_booking_id,
            last_activity_at=(
                conversation.last_activity_at.isoformat()
                if conversation.last_activity_at
                else None
            ),
        )
        for conversation in conversations
    ]


@router.get("/conversations/{conversation_id}", response_model=List[MessageResponse])
async def list_messages(
    conversation_id: str,
    limit: int = Query(50, ge=1, le=200),
    identity: Optional[Identity] = Depends(get_identity),
    message_service: MessageService = Depends(get_message_service),
) -> List[MessageResponse]:
    try:
        messages = await asyncio.to_thread(
            message_service.list_messages, identity, conversation_id, limit
        )
    except DomainException as e:
        handle_domain_exception(e)
    return [MessageResponse(**message.to_dict()) for message in messages]


@router.post("/conversations/{conversation_id}/read", response_model=MarkReadResponse)
async def mark_conversation_read(
    conversation_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    message_service: MessageService = Depends(get_message_service),
) -> MarkReadResponse:
    try:
        count = await asyncio.to_thread(
            message_service.mark_conversation_read, identity, conversation_id
        )
    except DomainException as e:
        handle_domain_exception(e)
    return MarkReadResponse(conversation_id=conversation_id, marked_read=count)
