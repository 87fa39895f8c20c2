# backend/fitbook/models/booking.py
"""
Booking model for the fitbook booking engine.

A booking reserves one seat of one class on one calendar date for one
student. Bookings carry a snapshot of the session time so later schedule
edits never move an existing commitment.

Lifecycle:
    REQUESTED -> CONFIRMED -> ATTENDED
    REQUESTED | CONFIRMED -> CANCELLED
ATTENDED and CANCELLED are terminal.
"""

from datetime import datetime, timezone
from enum import Enum
import logging
from typing import Any, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    REQUESTED = "REQUESTED"  # Initial state after a successful confirmation
    CONFIRMED = "CONFIRMED"  # Trainer acknowledged the booking
    ATTENDED = "ATTENDED"  # Trainer verified the student showed up
    CANCELLED = "CANCELLED"


ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.REQUESTED: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.ATTENDED, BookingStatus.CANCELLED}
    ),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.ATTENDED, BookingStatus.CANCELLED}),
    BookingStatus.ATTENDED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


class Booking(Base):
    """
    One student's seat in one session of a class.

    ``trainer_id`` is copied from the class so ownership checks and
    conversation linking never need the class row.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    class_id = Column(String(26), ForeignKey("classes.id"), nullable=False)
    student_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    trainer_id = Column(String(26), ForeignKey("users.id"), nullable=False)

    booking_date = Column(Date, nullable=False, index=True)
    booking_time = Column(Time, nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.REQUESTED.value, index=True)
    verification_code = Column(String(32), nullable=True, unique=True)
    enrollment_id = Column(String(26), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=lambda: datetime.now(timezone.utc),
    )
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    attended_at = Column(DateTime(timezone=True), nullable=True)
    verified_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)

    # Cancellation tracking
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    fitness_class = relationship("FitnessClass", backref="bookings")
    student = relationship("User", foreign_keys=[student_id], backref="student_bookings")
    trainer = relationship("User", foreign_keys=[trainer_id], backref="trainer_bookings")
    transitions = relationship(
        "BookingStatusTransition",
        back_populates="booking",
        order_by="BookingStatusTransition.created_at",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('REQUESTED', 'CONFIRMED', 'ATTENDED', 'CANCELLED')",
            name="ck_bookings_status",
        ),
        # At most one live booking per student per session
        Index(
            "uq_bookings_active_session",
            "class_id",
            "booking_date",
            "student_id",
            unique=True,
            sqlite_where=text("status != 'CANCELLED'"),
            postgresql_where=text("status != 'CANCELLED'"),
        ),
        Index("idx_bookings_class_date", "class_id", "booking_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: class={self.class_id} student={self.student_id} "
            f"date={self.booking_date} time={self.booking_time} status={self.status}>"
        )

    @property
    def current_status(self) -> BookingStatus:
        return BookingStatus(self.status)

    @property
    def is_cancellable(self) -> bool:
        """Check if booking can be cancelled."""
        return BookingStatus.CANCELLED in ALLOWED_TRANSITIONS[self.current_status]

    def can_transition_to(self, target: BookingStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.current_status]

    def confirm(self) -> None:
        self.status = BookingStatus.CONFIRMED.value
        self.confirmed_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} confirmed")

    def mark_attended(self, verified_by_user_id: str) -> None:
        """Record that the trainer verified attendance."""
        self.status = BookingStatus.ATTENDED.value
        self.attended_at = datetime.now(timezone.utc)
        self.verified_by_id = verified_by_user_id
        logger.info(f"Booking {self.id} marked attended by {verified_by_user_id}")

    def cancel(self, cancelled_by_user_id: str, reason: Optional[str] = None) -> None:
        """Cancel this booking."""
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_at = datetime.now(timezone.utc)
        self.cancelled_by_id = cancelled_by_user_id
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} cancelled by user {cancelled_by_user_id}")

    def involves(self, user_id: str) -> bool:
        return user_id in (self.student_id, self.trainer_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "class_id": self.class_id,
            "student_id": self.student_id,
            "trainer_id": self.trainer_id,
            "booking_date": self.booking_date.isoformat() if self.booking_date else None,
            "booking_time": self.booking_time.strftime("%H:%M") if self.booking_time else None,
            "status": self.status,
            "verification_code": self.verification_code,
            "enrollment_id": self.enrollment_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "confirmed_at": self.confirmed_at.isoformat() if self.confirmed_at else None,
            "attended_at": self.attended_at.isoformat() if self.attended_at else None,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancelled_by_id": self.cancelled_by_id,
            "cancellation_reason": self.cancellation_reason,
        }
