# backend/fitbook/repositories/conversation_repository.py
"""
Conversation Repository for per-user-pair messaging.

Provides data access methods for conversations between students and trainers.
"""

from datetime import datetime, timezone
from typing import Optional, Sequence, cast

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryConflictError
from ..models.conversation import Conversation, participant_pair_key
from .base_repository import BaseRepository


class ConversationRepository(BaseRepository[Conversation]):
    """
    Repository for Conversation entity operations.

    Handles all database operations for conversations including:
    - Finding or creating conversations for user pairs
    - Listing conversations for a user
    - Updating conversation metadata (linked booking, last activity)
    """

    def __init__(self, db: Session):
        """Initialize with database session."""
        super().__init__(db, Conversation)

    def find_by_pair(self, user_a: str, user_b: str) -> Optional[Conversation]:
        """
        Find the conversation between two users, in either order.

        Args:
            user_a: One participant's user ID
            user_b: The other participant's user ID

        Returns:
            The conversation if found, None otherwise
        """
        result = (
            self._query()
            .filter(Conversation.participant_pair == participant_pair_key(user_a, user_b))
            .first()
        )
        return cast(Optional[Conversation], result)

    def get_or_create(self, student_id: str, trainer_id: str) -> tuple[Conversation, bool]:
        """
        Get an existing conversation or create a new one.

        Safe against a concurrent creator: if the insert loses the race on the
        unique pair key, the winner's row is read back instead.

        Returns:
            Tuple of (conversation, created) where created is True if new
        """
        existing = self.find_by_pair(student_id, trainer_id)
        if existing:
            return existing, False

        try:
            conversation = self.create(
                student_id=student_id,
                trainer_id=trainer_id,
                participant_pair=participant_pair_key(student_id, trainer_id),
            )
        except RepositoryConflictError:
            winner = self.find_by_pair(student_id, trainer_id)
            if winner is None:
                raise
            self.logger.info(
                "Conversation created concurrently, reusing existing row",
                extra={"conversation_id": winner.id},
            )
            return winner, False

        return conversation, True

    def find_for_user(self, user_id: str, limit: int = 50) -> Sequence[Conversation]:
        """List a user's conversations, most recent activity first."""
        return (
            self._query()
            .filter(or_(Conversation.student_id == user_id, Conversation.trainer_id == user_id))
            .order_by(
                func.coalesce(Conversation.last_activity_at, Conversation.created_at).desc()
            )
            .limit(limit)
            .all()
        )

    def link_booking(
        self,
        conversation: Conversation,
        booking_id: str,
        timestamp: Optional[datetime] = None,
    ) -> Conversation:
        """Point the thread at ``booking_id`` and refresh its activity time."""
        now = timestamp or datetime.now(timezone.utc)
        conversation.linked_booking_id = booking_id
        conversation.last_activity_at = now
        conversation.updated_at = now
        self.db.flush()
        return conversation

    def touch(self, conversation: Conversation, timestamp: Optional[datetime] = None) -> None:
        now = timestamp or datetime.now(timezone.utc)
        conversation.last_activity_at = now
        conversation.updated_at = now
        self.db.flush()

