# backend/fitbook/repositories/booking_repository.py
"""
Booking Repository for the fitbook booking engine.

Implements data access for bookings and their status audit trail.
"Active" always means not cancelled: requested, confirmed and attended
bookings all occupy a seat.
"""

from datetime import date
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_QUERY_LIMIT
from ..core.exceptions import RepositoryException
from ..models.booking import TERMINAL_STATUSES, Booking, BookingStatus
from ..models.booking_status_transition import BookingStatusTransition
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """
    Repository for booking data access.

    Reads used by the availability gate, uniqueness probes for the
    verification issuer, and the audit rows written by the ledger.
    """

    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def _active(self):
        return self._query().filter(Booking.status != BookingStatus.CANCELLED.value)

    def find_active_for_session(
        self, class_id: str, booking_date: date, student_id: str
    ) -> Optional[Booking]:
        """Return the student's live booking for one session, if any."""
        try:
            return (
                self._active()
                .filter(
                    Booking.class_id == class_id,
                    Booking.booking_date == booking_date,
                    Booking.student_id == student_id,
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding booking for session: {str(e)}")
            raise RepositoryException(f"Failed to find booking: {str(e)}")

    def count_active_for_session(self, class_id: str, booking_date: date) -> int:
        try:
            return (
                self.db.query(func.count(Booking.id))
                .filter(
                    Booking.class_id == class_id,
                    Booking.booking_date == booking_date,
                    Booking.status != BookingStatus.CANCELLED.value,
                )
                .scalar()
                or 0
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting bookings for {class_id} on {booking_date}: {str(e)}")
            raise RepositoryException(f"Failed to count bookings: {str(e)}")

    def count_active_by_date(self, class_id: str, dates: Iterable[date]) -> Dict[date, int]:
        """
        Count live bookings per session date in one query.

        Dates without bookings are absent from the result.
        """
        wanted = list(dates)
        if not wanted:
            return {}
        try:
            rows = (
                self.db.query(Booking.booking_date, func.count(Booking.id))
                .filter(
                    Booking.class_id == class_id,
                    Booking.booking_date.in_(wanted),
                    Booking.status != BookingStatus.CANCELLED.value,
                )
                .group_by(Booking.booking_date)
                .all()
            )
            return {row[0]: int(row[1]) for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting bookings by date: {str(e)}")
            raise RepositoryException(f"Failed to count bookings: {str(e)}")

    def count_non_terminal_for_class(self, class_id: str) -> int:
        terminal = [status.value for status in TERMINAL_STATUSES]
        try:
            return (
                self.db.query(func.count(Booking.id))
                .filter(Booking.class_id == class_id, Booking.status.notin_(terminal))
                .scalar()
                or 0
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting open bookings for {class_id}: {str(e)}")
            raise RepositoryException(f"Failed to count bookings: {str(e)}")

    def get_by_verification_code(self, code: str, for_update: bool = False) -> Optional[Booking]:
        query = self._query().filter(Booking.verification_code == code)
        if for_update:
            query = self._lock(query).populate_existing()
        try:
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding booking by code: {str(e)}")
            raise RepositoryException(f"Failed to find booking: {str(e)}")

    def verification_code_exists(self, code: str) -> bool:
        return self.exists(verification_code=code)

    def find_by_enrollment(self, enrollment_id: str) -> List[Booking]:
        return (
            self._query()
            .filter(Booking.enrollment_id == enrollment_id)
            .order_by(Booking.booking_date)
            .all()
        )

    def list_for_student(
        self, student_id: str, include_cancelled: bool = False, limit: int = DEFAULT_QUERY_LIMIT
    ) -> List[Booking]:
        query = self._query() if include_cancelled else self._active()
        return (
            query.filter(Booking.student_id == student_id)
            .order_by(Booking.booking_date, Booking.booking_time)
            .limit(limit)
            .all()
        )

    def list_for_trainer(
        self, trainer_id: str, on_date: Optional[date] = None, limit: int = DEFAULT_QUERY_LIMIT
    ) -> List[Booking]:
        query = self._active().filter(Booking.trainer_id == trainer_id)
        if on_date is not None:
            query = query.filter(Booking.booking_date == on_date)
        return query.order_by(Booking.booking_date, Booking.booking_time).limit(limit).all()

    # Audit trail

    def add_transition(
        self,
        booking: Booking,
        from_status: Optional[BookingStatus],
        to_status: BookingStatus,
        actor_id: str,
        reason: Optional[str] = None,
    ) -> BookingStatusTransition:
        row = BookingStatusTransition(
            booking_id=booking.id,
            from_status=from_status.value if from_status else None,
            to_status=to_status.value,
            actor_id=actor_id,
            reason=reason,
        )
        self.db.add(row)
        self.db.flush()
        return row

    def list_transitions(self, booking_id: str) -> List[BookingStatusTransition]:
        return (
            self.db.query(BookingStatusTransition)
            .filter(BookingStatusTransition.booking_id == booking_id)
            .order_by(BookingStatusTransition.created_at, BookingStatusTransition.id)
            .all()
        )
