# backend/fitbook/repositories/message_repository.py
"""
Message Repository for the chat system.

Implements data access for messages and their unread state.
"""

from datetime import datetime, timezone
import logging
from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.message import Message
from .base_repository import BaseRepository


class MessageRepository(BaseRepository[Message]):
    def __init__(self, db: Session):
        """Initialize with Message model."""
        super().__init__(db, Message)
        self.logger = logging.getLogger(__name__)

    def create_conversation_message(
        self,
        conversation_id: str,
        sender_id: str,
        recipient_id: str,
        content: str,
        created_at: Optional[datetime] = None,
    ) -> Message:
        """Insert a new unread message into a conversation."""
        return self.create(
            conversation_id=conversation_id,
            sender_id=sender_id,
            recipient_id=recipient_id,
            content=content,
            created_at=created_at or datetime.now(timezone.utc),
        )

    def list_for_conversation(
        self, conversation_id: str, limit: int = 50, before: Optional[datetime] = None
    ) -> List[Message]:
        """Messages oldest first, optionally only those older than ``before``."""
        try:
            query = self._query().filter(Message.conversation_id == conversation_id)
            if before is not None:
                query = query.filter(Message.created_at < before)
            rows = query.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit).all()
            return list(reversed(rows))
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing messages for {conversation_id}: {str(e)}")
            raise RepositoryException(f"Failed to list messages: {str(e)}")

    def count_unread(self, user_id: str) -> int:
        try:
            return (
                self.db.query(func.count(Message.id))
                .filter(Message.recipient_id == user_id, Message.is_read.is_(False))
                .scalar()
                or 0
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting unread messages: {str(e)}")
            raise RepositoryException(f"Failed to count unread messages: {str(e)}")

    def mark_conversation_read(self, conversation_id: str, user_id: str) -> int:
        """
        Mark every message addressed to ``user_id`` in the conversation as read.

        Returns:
            Number of messages that changed state
        """
        stmt = (
            update(Message)
            .where(
                Message.conversation_id == conversation_id,
                Message.recipient_id == user_id,
                Message.is_read.is_(False),
            )
            .values(is_read=True, read_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session="fetch")
        )
        try:
            result = self.db.execute(stmt)
            return int(result.rowcount or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error marking conversation {conversation_id} read: {str(e)}")
            raise RepositoryException(f"Failed to mark messages read: {str(e)}")
