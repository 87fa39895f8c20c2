# backend/fitbook/services/thread_linker.py
"""
Thread Linker.

Keeps the student-trainer conversation in step with bookings: finds or
creates the pair's single conversation, points it at the newest booking
and posts a summary message from the student to the trainer. The summary
is an ordinary message and counts toward the trainer's unread total.
"""

from datetime import date, time
import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import NotFoundError, ValidationException
from ..models.booking import Booking
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .message_service import MessageService

logger = logging.getLogger(__name__)


def format_session_date(day: date) -> str:
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"


def format_session_time(value: Optional[time]) -> str:
    return value.strftime("%H:%M") if value else ""


class ThreadLinker(BaseService):
    def __init__(
        self,
        db: Session,
        message_service: Optional[MessageService] = None,
        payment_advisory: Optional[str] = None,
    ):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.conversation_repository = RepositoryFactory.create_conversation_repository(db)
        self.message_service = message_service or MessageService(db)
        self.payment_advisory = payment_advisory or settings.payment_advisory

    @BaseService.measure_operation("link_booking")
    def link_booking(self, student_id: str, trainer_id: str, booking_id: str) -> str:
        """
        Attach one booking to the pair's conversation and post its summary.

        Flush-only; the caller's transaction commits.

        Returns:
            The conversation ID
        """
        booking = self._load_booking(booking_id, student_id, trainer_id)
        class_name = self._class_name(booking)
        content = "\n".join(
            [
                f"New booking: {class_name}",
                f"Date: {format_session_date(booking.booking_date)}",
                f"Time: {format_session_time(booking.booking_time)}",
                f"Verification code: {booking.verification_code or '-'}",
                "",
                self.payment_advisory,
            ]
        )
        return self._link(student_id, trainer_id, booking, content)

    @BaseService.measure_operation("link_enrollment")
    def link_enrollment(self, student_id: str, trainer_id: str, booking_ids: Sequence[str]) -> str:
        """
        Post a single summary covering every session of a multi-week enrollment.

        The conversation is linked to the last booking in ``booking_ids``.
        """
        if not booking_ids:
            raise ValidationException(
                "An enrollment needs at least one booking", code="EMPTY_ENROLLMENT"
            )

        bookings = [self._load_booking(bid, student_id, trainer_id) for bid in booking_ids]
        class_name = self._class_name(bookings[0])
        lines: List[str] = [
            f"New enrollment: {class_name} ({len(bookings)} sessions)",
        ]
        for booking in sorted(bookings, key=lambda b: b.booking_date):
            lines.append(
                f"- {format_session_date(booking.booking_date)} at "
                f"{format_session_time(booking.booking_time)}: "
                f"code {booking.verification_code or '-'}"
            )
        lines.extend(["", self.payment_advisory])
        return self._link(student_id, trainer_id, bookings[-1], "\n".join(lines))

    def _link(self, student_id: str, trainer_id: str, booking: Booking, content: str) -> str:
        conversation, created = self.conversation_repository.get_or_create(student_id, trainer_id)
        self.conversation_repository.link_booking(conversation, booking.id)
        self.message_service.post_message(
            conversation,
            sender_id=student_id,
            recipient_id=trainer_id,
            content=content,
            booking_id=booking.id,
        )
        self.log_operation(
            "link_booking",
            conversation_id=conversation.id,
            booking_id=booking.id,
            conversation_created=created,
        )
        return str(conversation.id)

    def _load_booking(self, booking_id: str, student_id: str, trainer_id: str) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        if booking.student_id != student_id or booking.trainer_id != trainer_id:
            raise ValidationException(
                "Booking does not belong to this student and trainer",
                code="BOOKING_PARTICIPANT_MISMATCH",
                details={"booking_id": booking_id},
            )
        return booking

    def _class_name(self, booking: Booking) -> str:
        fitness_class = self.class_repository.get_by_id(booking.class_id)
        return fitness_class.name if fitness_class else "Class"
