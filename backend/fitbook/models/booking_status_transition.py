# backend/fitbook/models/booking_status_transition.py
"""Append-only audit trail of booking status changes."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


class BookingStatusTransition(Base):
    __tablename__ = "booking_status_transitions"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False
    )
    # NULL for the creation row
    from_status = Column(String(20), nullable=True)
    to_status = Column(String(20), nullable=False)
    actor_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    booking = relationship("Booking", back_populates="transitions")

    __table_args__ = (Index("idx_booking_transitions_booking", "booking_id", "created_at"),)

    def __repr__(self) -> str:
        return (
            f"<BookingStatusTransition {self.booking_id}: "
            f"{self.from_status} -> {self.to_status} by {self.actor_id}>"
        )
