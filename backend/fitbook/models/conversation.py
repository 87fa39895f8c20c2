# backend/fitbook/models/conversation.py
"""
Conversation model for per-user-pair messaging.

Each student-trainer pair has exactly one conversation, regardless of how
many bookings they have together. ``participant_pair`` is the sorted
``"low:high"`` key of both user ids and carries the uniqueness guarantee,
so the pair is unordered.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


def participant_pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for a pair of users."""
    low, high = sorted((user_a, user_b))
    return f"{low}:{high}"


class Conversation(Base):
    """
    Attributes:
        id: ULID primary key
        student_id: The student who opened the thread
        trainer_id: The trainer on the other side
        participant_pair: Unique sorted pair key
        linked_booking_id: Most recent booking posted into the thread
        last_activity_at: When the most recent message was posted
    """

    __tablename__ = "conversations"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    student_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    trainer_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    participant_pair = Column(String(53), nullable=False, unique=True)
    linked_booking_id = Column(String(26), ForeignKey("bookings.id"), nullable=True)
    last_activity_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    student = relationship("User", foreign_keys=[student_id])
    trainer = relationship("User", foreign_keys=[trainer_id])
    messages = relationship(
        "Message",
        back_populates="conversation",
        order_by="Message.created_at",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_conversations_student", "student_id"),
        Index("idx_conversations_trainer", "trainer_id"),
        Index("idx_conversations_last_activity", "last_activity_at"),
    )

    def __repr__(self) -> str:
        return f"<Conversation(id={self.id}, student={self.student_id}, trainer={self.trainer_id})>"

    def get_other_user_id(self, current_user_id: str) -> str:
        if current_user_id == self.student_id:
            return str(self.trainer_id)
        return str(self.student_id)

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.student_id, self.trainer_id)
