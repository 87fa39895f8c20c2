# backend/fitbook/services/booking_orchestrator.py
"""
Booking Orchestrator.

The single write entry point for students. One confirmation runs the
ledger write, the verification code and the conversation update in one
transaction; real-time delivery and domain events go out only after it
commits.

    identity -> gate (advisory) -> ledger -> verification -> thread linker
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
import logging
from typing import Any, Callable, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import DAYS_PER_WEEK
from ..core.enums import BookingPeriod
from ..core.exceptions import (
    AuthorizationError,
    DomainException,
    NotFoundError,
    ValidationException,
)
from ..core.identity import Identity, require_identity
from ..core.ulid_helper import generate_ulid
from ..events.publisher import EventPublisher
from ..models.booking import Booking
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .availability_service import AvailabilityGate
from .base import BaseService
from .booking_ledger import BookingLedger
from .message_service import MessageService
from .messaging.bus import MessageBus
from .recurrence import ClassSchedule, resolve_dates
from .thread_linker import ThreadLinker
from .verification_service import VerificationIssuer

logger = logging.getLogger(__name__)


@dataclass
class BookingOutcome:
    """
    Result of one confirmation attempt.

    On success ``booking_id`` and ``verification_code`` refer to the first
    session; ``booking_ids`` lists every booking written. On failure
    ``error_code`` and ``reason`` describe why nothing was written.
    """

    success: bool
    booking_id: Optional[str] = None
    verification_code: Optional[str] = None
    conversation_id: Optional[str] = None
    booking_ids: List[str] = field(default_factory=list)
    verification_codes: List[str] = field(default_factory=list)
    enrollment_id: Optional[str] = None
    error_code: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def rejected(cls, exc: DomainException) -> "BookingOutcome":
        return cls(success=False, error_code=exc.code, reason=exc.message)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class BookingOrchestrator(BaseService):
    def __init__(
        self,
        db: Session,
        bus: Optional[MessageBus] = None,
        today_fn: Optional[Callable[[], date]] = None,
        event_publisher: Optional[EventPublisher] = None,
    ):
        super().__init__(db)
        if event_publisher is None and bus is not None:
            event_publisher = EventPublisher(bus)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.gate = AvailabilityGate(db, today_fn=today_fn)
        self.ledger = BookingLedger(db, event_publisher=event_publisher)
        self.issuer = VerificationIssuer(db)
        self.linker = ThreadLinker(db, message_service=MessageService(db, bus))

    def confirm_booking(
        self,
        identity: Optional[Identity],
        student_id: str,
        trainer_id: str,
        class_id: str,
        booking_date: Union[date, datetime],
        period: Union[BookingPeriod, str] = BookingPeriod.ONCE,
    ) -> BookingOutcome:
        """
        Book a class and report the outcome instead of raising.

        Every domain failure (wrong role, class full, already booked, ...)
        comes back as ``success=False`` with a human-readable reason.
        """
        period_label = period.value if isinstance(period, BookingPeriod) else str(period)
        try:
            outcome = self.place_booking(
                identity, student_id, trainer_id, class_id, booking_date, period
            )
        except DomainException as exc:
            self.logger.info(
                f"Booking rejected: {exc.code}",
                extra={"class_id": class_id, "student_id": student_id, "error_code": exc.code},
            )
            prometheus_metrics.record_booking_outcome(period_label, exc.code)
            return BookingOutcome.rejected(exc)

        prometheus_metrics.record_booking_outcome(period_label, "success")
        return outcome

    @BaseService.measure_operation("place_booking")
    def place_booking(
        self,
        identity: Optional[Identity],
        student_id: str,
        trainer_id: str,
        class_id: str,
        booking_date: Union[date, datetime],
        period: Union[BookingPeriod, str] = BookingPeriod.ONCE,
    ) -> BookingOutcome:
        """
        Raising variant of ``confirm_booking``.

        Raises:
            AuthorizationError: no identity, acting for someone else, or not a student
            NotFoundError: unknown student, trainer or class
            ValidationException: class/trainer mismatch, bad period or date
            CapacityExceededError, DuplicateBookingError: from the ledger
        """
        self._authorize(identity, student_id)
        booking_period = self._parse_period(period)
        session_date = booking_date.date() if isinstance(booking_date, datetime) else booking_date

        with self.transaction():
            self._require_user(student_id)
            self._require_user(trainer_id)
            fitness_class = self.class_repository.get_by_id(class_id)
            if fitness_class is None:
                raise NotFoundError("Class", class_id)
            if fitness_class.trainer_id != trainer_id:
                raise ValidationException(
                    "This class is not offered by that trainer",
                    code="CLASS_TRAINER_MISMATCH",
                    details={"class_id": class_id, "trainer_id": trainer_id},
                )

            # The picked date must itself be bookable, for either period
            self.gate.check_bookable(class_id, session_date)

            if booking_period == BookingPeriod.FOUR_WEEKS:
                dates = resolve_dates(
                    ClassSchedule.from_class(fitness_class),
                    session_date,
                    settings.enrollment_weeks * DAYS_PER_WEEK,
                )
                enrollment_id: Optional[str] = generate_ulid()
            else:
                dates = [session_date]
                enrollment_id = None

            bookings: List[Booking] = []
            codes: List[str] = []
            for day in dates:
                self.gate.check_bookable(class_id, day)
                booking = self.ledger.create(
                    student_id=student_id,
                    class_id=class_id,
                    booking_date=day,
                    enrollment_id=enrollment_id,
                )
                codes.append(self.issuer.issue(booking))
                bookings.append(booking)

            booking_ids = [booking.id for booking in bookings]
            if enrollment_id is None:
                conversation_id = self.linker.link_booking(student_id, trainer_id, booking_ids[0])
            else:
                conversation_id = self.linker.link_enrollment(student_id, trainer_id, booking_ids)

        self.log_operation(
            "place_booking",
            class_id=class_id,
            student_id=student_id,
            period=booking_period.value,
            bookings=len(booking_ids),
        )
        return BookingOutcome(
            success=True,
            booking_id=booking_ids[0],
            verification_code=codes[0],
            conversation_id=conversation_id,
            booking_ids=booking_ids,
            verification_codes=codes,
            enrollment_id=enrollment_id,
        )

    def _authorize(self, identity: Optional[Identity], student_id: str) -> Identity:
        current = require_identity(identity)
        if not current.is_student:
            raise AuthorizationError(
                "Only students can book classes",
                code="ROLE_CANNOT_BOOK",
                details={"role": current.role.value},
            )
        if current.user_id != student_id:
            raise AuthorizationError("You can only book classes for yourself")
        return current

    @staticmethod
    def _parse_period(period: Union[BookingPeriod, str]) -> BookingPeriod:
        try:
            return BookingPeriod(period)
        except ValueError:
            raise ValidationException(
                f"Unknown booking period '{period}'",
                code="INVALID_PERIOD",
                details={"allowed": [p.value for p in BookingPeriod]},
            )

    def _require_user(self, user_id: str) -> None:
        if self.user_repository.get_by_id(user_id) is None:
            raise NotFoundError("User", user_id)
