# backend/fitbook/services/message_service.py
"""
Message Service for the chat system.

Every message, whether typed by a user or posted by the engine as a
booking summary, goes through ``post_message``. Real-time delivery is
queued until the surrounding transaction commits, so a rolled-back
booking never shows up in anyone's inbox.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.constants import MAX_MESSAGE_LENGTH
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationException
from ..core.identity import Identity, require_identity
from ..models.conversation import Conversation
from ..models.message import Message
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .messaging.bus import MessageBus
from .messaging.events import (
    build_new_message_event,
    build_read_receipt_event,
    build_unread_count_event,
    conversation_channel,
    user_channel,
)

logger = logging.getLogger(__name__)


class MessageService(BaseService):
    def __init__(self, db: Session, bus: Optional[MessageBus] = None):
        super().__init__(db)
        self.bus = bus
        self.conversation_repository = RepositoryFactory.create_conversation_repository(db)
        self.message_repository = RepositoryFactory.create_message_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    def post_message(
        self,
        conversation: Conversation,
        sender_id: str,
        recipient_id: str,
        content: str,
        booking_id: Optional[str] = None,
    ) -> Message:
        """
        Store a message and queue its delivery.

        Flush-only; delivery happens after the caller's transaction commits.
        """
        message = self.message_repository.create_conversation_message(
            conversation_id=conversation.id,
            sender_id=sender_id,
            recipient_id=recipient_id,
            content=content,
        )
        self.conversation_repository.touch(conversation, message.created_at)
        unread = self.message_repository.count_unread(recipient_id)
        self._queue_delivery(message, unread, booking_id)
        return message

    @BaseService.measure_operation("send_message")
    def send_message(
        self, identity: Optional[Identity], recipient_id: str, content: str
    ) -> Message:
        """
        Send a user-authored message, opening the conversation on first contact.
        """
        sender = require_identity(identity)
        text = (content or "").strip()
        if not text:
            raise ValidationException("Message cannot be empty", code="EMPTY_MESSAGE")
        if len(text) > MAX_MESSAGE_LENGTH:
            raise ValidationException(
                f"Message must be at most {MAX_MESSAGE_LENGTH} characters",
                code="MESSAGE_TOO_LONG",
            )
        if recipient_id == sender.user_id:
            raise ValidationException("You cannot message yourself", code="SELF_MESSAGE")

        with self.transaction():
            recipient = self.user_repository.get_by_id(recipient_id)
            if recipient is None:
                raise NotFoundError("User", recipient_id)
            if recipient.is_trainer:
                student_id, trainer_id = sender.user_id, recipient_id
            else:
                student_id, trainer_id = recipient_id, sender.user_id
            conversation, _ = self.conversation_repository.get_or_create(student_id, trainer_id)
            message = self.post_message(conversation, sender.user_id, recipient_id, text)
        return message

    def list_messages(
        self, identity: Optional[Identity], conversation_id: str, limit: int = 50
    ) -> List[Message]:
        conversation = self._participant_conversation(identity, conversation_id)
        return self.message_repository.list_for_conversation(conversation.id, limit=limit)

    def list_conversations(
        self, identity: Optional[Identity], limit: int = 50
    ) -> List[Conversation]:
        user = require_identity(identity)
        return list(self.conversation_repository.find_for_user(user.user_id, limit=limit))

    def get_unread_count(self, user_id: str) -> int:
        return self.message_repository.count_unread(user_id)

    @BaseService.measure_operation("mark_conversation_read")
    def mark_conversation_read(self, identity: Optional[Identity], conversation_id: str) -> int:
        with self.transaction():
            conversation = self._participant_conversation(identity, conversation_id)
            reader_id = require_identity(identity).user_id
            count = self.message_repository.mark_conversation_read(conversation.id, reader_id)
            if count and self.bus is not None:
                bus = self.bus
                remaining = self.message_repository.count_unread(reader_id)
                receipt = build_read_receipt_event(conversation.id, reader_id, count)
                unread_event = build_unread_count_event(reader_id, remaining)
                channel = conversation_channel(conversation.id)
                self.after_commit(lambda: bus.publish(channel, receipt))
                self.after_commit(lambda: bus.publish(user_channel(reader_id), unread_event))
        return count

    def _participant_conversation(
        self, identity: Optional[Identity], conversation_id: str
    ) -> Conversation:
        user = require_identity(identity)
        conversation = self.conversation_repository.get_by_id(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation", conversation_id)
        if not conversation.is_participant(user.user_id):
            raise AuthorizationError("You are not part of this conversation")
        return conversation

    def _queue_delivery(self, message: Message, unread: int, booking_id: Optional[str]) -> None:
        if self.bus is None:
            return
        bus = self.bus
        event = build_new_message_event(
            message_id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            recipient_id=message.recipient_id,
            content=message.content,
            created_at=message.created_at,
            booking_id=booking_id,
        )
        unread_event = build_unread_count_event(message.recipient_id, unread)
        recipient_id = message.recipient_id
        conversation_id = message.conversation_id

        def _deliver() -> None:
            bus.publish(conversation_channel(conversation_id), event)
            bus.publish(user_channel(recipient_id), event)
            bus.publish(user_channel(recipient_id), unread_event)

        self.after_commit(_deliver)
