# backend/fitbook/services/booking_ledger.py
"""
Booking Ledger.

The single point of truth for bookings and the only component that needs
transactional discipline. It owns the booking state machine:

    REQUESTED -> CONFIRMED -> ATTENDED
    REQUESTED | CONFIRMED -> CANCELLED

``create`` only flushes; the caller's transaction decides whether the new
booking survives. Every other transition commits on its own.
"""

from datetime import date, datetime, time, timezone
import logging
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from ..core.constants import MAX_REASON_LENGTH
from ..core.exceptions import (
    AuthorizationError,
    CapacityExceededError,
    DuplicateBookingError,
    InvalidTransitionError,
    NotFoundError,
    RepositoryConflictError,
    ValidationException,
)
from ..core.identity import Identity, require_identity
from ..events.booking_events import (
    BookingAttended,
    BookingCancelled,
    BookingConfirmed,
    BookingCreated,
)
from ..events.publisher import Event, EventPublisher
from ..models.booking import Booking, BookingStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .recurrence import ClassSchedule, is_scheduled_on, weekday_label
from .verification_service import normalize_code

logger = logging.getLogger(__name__)


class BookingLedger(BaseService):
    def __init__(self, db: Session, event_publisher: Optional[EventPublisher] = None):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.capacity_repository = RepositoryFactory.create_capacity_repository(db)
        self.event_publisher = event_publisher

    # Creation

    @BaseService.measure_operation("create_booking")
    def create(
        self,
        student_id: str,
        class_id: str,
        booking_date: Union[date, datetime],
        booking_time: Optional[time] = None,
        enrollment_id: Optional[str] = None,
    ) -> Booking:
        """
        Write a new REQUESTED booking and claim its seat.

        Raises:
            NotFoundError: class missing or archived
            ValidationException: the class does not run on that weekday
            DuplicateBookingError: the student already holds a live booking for the session
            CapacityExceededError: no seat left on that date
        """
        session_date = booking_date.date() if isinstance(booking_date, datetime) else booking_date

        fitness_class = self.class_repository.get_by_id(class_id)
        if fitness_class is None or not fitness_class.is_active:
            raise NotFoundError("Class", class_id)

        if not is_scheduled_on(ClassSchedule.from_class(fitness_class), session_date):
            raise ValidationException(
                f"This class does not run on {weekday_label(session_date)}",
                code="DATE_NOT_SCHEDULED",
                details={"class_id": class_id, "date": session_date.isoformat()},
            )

        if self.booking_repository.find_active_for_session(class_id, session_date, student_id):
            raise DuplicateBookingError(class_id, session_date, student_id)

        capacity = int(fitness_class.capacity)
        if not self.capacity_repository.claim_seat(class_id, session_date, capacity):
            prometheus_metrics.inc_capacity_rejection()
            self.logger.info(
                "Seat claim rejected, session full",
                extra={"class_id": class_id, "session_date": session_date.isoformat()},
            )
            raise CapacityExceededError(class_id, session_date, capacity)

        try:
            booking = self.booking_repository.create(
                class_id=class_id,
                student_id=student_id,
                trainer_id=fitness_class.trainer_id,
                booking_date=session_date,
                booking_time=booking_time or fitness_class.schedule_time,
                status=BookingStatus.REQUESTED.value,
                enrollment_id=enrollment_id,
            )
        except RepositoryConflictError as exc:
            # Lost the race on the active-session index; give the seat back
            self.capacity_repository.release_seat(class_id, session_date)
            raise DuplicateBookingError(class_id, session_date, student_id) from exc

        self.booking_repository.add_transition(
            booking, None, BookingStatus.REQUESTED, actor_id=student_id
        )
        self._publish_after_commit(
            BookingCreated(
                booking_id=booking.id,
                class_id=class_id,
                student_id=student_id,
                trainer_id=booking.trainer_id,
                booking_date=session_date,
                created_at=booking.created_at or datetime.now(timezone.utc),
                enrollment_id=enrollment_id,
            )
        )
        self.log_operation("create_booking", booking_id=booking.id, class_id=class_id)
        return booking

    # Transitions

    @BaseService.measure_operation("confirm_booking")
    def confirm(self, booking_id: str, actor: Optional[Identity]) -> Booking:
        """Trainer acknowledges a REQUESTED booking."""
        identity = require_identity(actor)
        with self.transaction():
            booking = self._get_for_update(booking_id)
            self._require_trainer(booking, identity)
            self._check_transition(booking, BookingStatus.CONFIRMED)
            booking.confirm()
            self._record(
                booking, BookingStatus.REQUESTED, BookingStatus.CONFIRMED, identity.user_id
            )
            self._publish_after_commit(
                BookingConfirmed(
                    booking_id=booking.id,
                    confirmed_by=identity.user_id,
                    confirmed_at=booking.confirmed_at,
                )
            )
        return booking

    @BaseService.measure_operation("confirm_attendance")
    def confirm_attendance(self, booking_id: str, actor: Optional[Identity]) -> Booking:
        """
        Mark the student as attended.

        Only the class's trainer may do this, from REQUESTED or CONFIRMED.
        """
        identity = require_identity(actor)
        with self.transaction():
            booking = self._get_for_update(booking_id)
            self._attend(booking, identity)
        return booking

    @BaseService.measure_operation("verify_attendance")
    def verify_attendance(self, code: str, actor: Optional[Identity]) -> Booking:
        """
        Trainer enters the code the student shows at the class.

        The code only locates the booking; the ownership check still applies.
        """
        identity = require_identity(actor)
        normalized = normalize_code(code)
        with self.transaction():
            booking = self.booking_repository.get_by_verification_code(normalized, for_update=True)
            if booking is None:
                raise NotFoundError("Booking", normalized)
            self._attend(booking, identity)
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel(
        self, booking_id: str, actor: Optional[Identity], reason: Optional[str] = None
    ) -> Booking:
        """
        Cancel a live booking and release its seat.

        Either the booking's student or the class's trainer may cancel.
        Cancelling twice is an error, not a no-op.
        """
        identity = require_identity(actor)
        cleaned_reason = reason.strip() if reason else None
        if cleaned_reason and len(cleaned_reason) > MAX_REASON_LENGTH:
            raise ValidationException(
                f"Cancellation reason must be at most {MAX_REASON_LENGTH} characters",
                code="REASON_TOO_LONG",
            )

        with self.transaction():
            booking = self._get_for_update(booking_id)
            if not booking.involves(identity.user_id):
                raise AuthorizationError(
                    "Only the student or the trainer can cancel this booking",
                    details={"booking_id": booking_id},
                )
            previous = booking.current_status
            self._check_transition(booking, BookingStatus.CANCELLED)
            booking.cancel(identity.user_id, cleaned_reason)
            self.capacity_repository.release_seat(booking.class_id, booking.booking_date)
            self._record(
                booking, previous, BookingStatus.CANCELLED, identity.user_id, cleaned_reason
            )
            self._publish_after_commit(
                BookingCancelled(
                    booking_id=booking.id,
                    cancelled_by=identity.user_id,
                    cancelled_at=booking.cancelled_at,
                    reason=cleaned_reason,
                )
            )
        return booking

    def can_cancel(self, booking_id: str, actor: Optional[Identity]) -> bool:
        """Whether ``actor`` could cancel the booking right now."""
        identity = require_identity(actor)
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking.involves(identity.user_id) and booking.is_cancellable

    def get_booking(self, booking_id: str, actor: Optional[Identity]) -> Booking:
        identity = require_identity(actor)
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        if not booking.involves(identity.user_id) and not identity.is_admin:
            raise AuthorizationError(details={"booking_id": booking_id})
        return booking

    def list_bookings(
        self, actor: Optional[Identity], include_cancelled: bool = False
    ) -> List[Booking]:
        """Upcoming and past bookings for the caller; trainers see their classes' bookings."""
        identity = require_identity(actor)
        if identity.is_trainer:
            return self.booking_repository.list_for_trainer(identity.user_id)
        return self.booking_repository.list_for_student(
            identity.user_id, include_cancelled=include_cancelled
        )

    def get_enrollment(self, enrollment_id: str, actor: Optional[Identity]) -> List[Booking]:
        identity = require_identity(actor)
        bookings = self.booking_repository.find_by_enrollment(enrollment_id)
        if not bookings:
            raise NotFoundError("Enrollment", enrollment_id)
        if not bookings[0].involves(identity.user_id) and not identity.is_admin:
            raise AuthorizationError(details={"enrollment_id": enrollment_id})
        return bookings

    def history(self, booking_id: str):
        return self.booking_repository.list_transitions(booking_id)

    # Helpers

    def _get_for_update(self, booking_id: str) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id, for_update=True)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking

    @staticmethod
    def _require_trainer(booking: Booking, identity: Identity) -> None:
        if booking.trainer_id != identity.user_id:
            raise AuthorizationError(
                "Only the class's trainer can do this",
                details={"booking_id": booking.id},
            )

    @staticmethod
    def _check_transition(booking: Booking, target: BookingStatus) -> None:
        if not booking.can_transition_to(target):
            raise InvalidTransitionError(booking.id, booking.status, target.value)

    def _attend(self, booking: Booking, identity: Identity) -> None:
        self._require_trainer(booking, identity)
        previous = booking.current_status
        self._check_transition(booking, BookingStatus.ATTENDED)
        booking.mark_attended(identity.user_id)
        self._record(booking, previous, BookingStatus.ATTENDED, identity.user_id)
        self._publish_after_commit(
            BookingAttended(
                booking_id=booking.id,
                verified_by=identity.user_id,
                attended_at=booking.attended_at,
            )
        )

    def _record(
        self,
        booking: Booking,
        from_status: BookingStatus,
        to_status: BookingStatus,
        actor_id: str,
        reason: Optional[str] = None,
    ) -> None:
        self.booking_repository.add_transition(booking, from_status, to_status, actor_id, reason)
        self.after_commit(lambda: prometheus_metrics.record_transition(to_status.value))
        self.log_operation(
            "booking_transition",
            booking_id=booking.id,
            from_status=from_status.value,
            to_status=to_status.value,
        )

    def _publish_after_commit(self, event: Event) -> None:
        if self.event_publisher is None:
            return
        publisher = self.event_publisher
        self.after_commit(lambda: publisher.publish(event))
