# backend/fitbook/services/availability_service.py
"""
Availability Gate.

Read-only, advisory answers to "can this session still be booked?". The
gate is what the UI consults before the student confirms; the ledger never
trusts it and re-checks capacity atomically at write time.
"""

from dataclasses import dataclass
from datetime import date, datetime
import logging
from typing import Callable, List, Optional, Union

from sqlalchemy.orm import Session

from ..core.exceptions import CapacityExceededError, NotFoundError, ValidationException
from ..models.fitness_class import FitnessClass
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .recurrence import ClassSchedule, is_scheduled_on, resolve_dates, weekday_label

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DateAvailability:
    date: date
    remaining_capacity: int
    is_bookable: bool


class AvailabilityGate(BaseService):
    """Capacity and schedule checks for one class session at a time."""

    def __init__(self, db: Session, today_fn: Optional[Callable[[], date]] = None):
        super().__init__(db)
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self._today = today_fn or date.today

    def _get_class(self, class_id: str) -> FitnessClass:
        fitness_class = self.class_repository.get_by_id(class_id)
        if fitness_class is None:
            raise NotFoundError("Class", class_id)
        return fitness_class

    @staticmethod
    def _as_date(value: Union[date, datetime]) -> date:
        return value.date() if isinstance(value, datetime) else value

    def remaining_capacity(self, class_id: str, session_date: Union[date, datetime]) -> int:
        """Seats left: capacity minus live bookings for that calendar date, never negative."""
        fitness_class = self._get_class(class_id)
        taken = self.booking_repository.count_active_for_session(
            class_id, self._as_date(session_date)
        )
        return max(int(fitness_class.capacity) - taken, 0)

    @BaseService.measure_operation("is_bookable")
    def is_bookable(self, class_id: str, session_date: Union[date, datetime]) -> bool:
        fitness_class = self._get_class(class_id)
        day = self._as_date(session_date)
        if not fitness_class.is_active:
            return False
        if day < self._today():
            return False
        if not is_scheduled_on(ClassSchedule.from_class(fitness_class), day):
            return False
        return self.remaining_capacity(class_id, day) > 0

    @BaseService.measure_operation("bookable_dates")
    def bookable_dates(
        self,
        class_id: str,
        window_start: Optional[Union[date, datetime]] = None,
        window_length_days: Optional[int] = None,
    ) -> List[DateAvailability]:
        """
        Every scheduled date in the window with its remaining seats.

        Counts for all dates are fetched in a single query.
        """
        fitness_class = self._get_class(class_id)
        today = self._today()
        start = self._as_date(window_start) if window_start is not None else today
        dates = resolve_dates(ClassSchedule.from_class(fitness_class), start, window_length_days)
        taken = self.booking_repository.count_active_by_date(class_id, dates)

        result = []
        for day in dates:
            remaining = max(int(fitness_class.capacity) - taken.get(day, 0), 0)
            result.append(
                DateAvailability(
                    date=day,
                    remaining_capacity=remaining,
                    is_bookable=bool(fitness_class.is_active) and day >= today and remaining > 0,
                )
            )
        return result

    def check_bookable(self, class_id: str, session_date: Union[date, datetime]) -> None:
        """
        Raise the specific reason a session cannot be booked.

        Advisory like ``is_bookable``; the ledger still re-checks at write time.
        """
        fitness_class = self._get_class(class_id)
        day = self._as_date(session_date)
        if not fitness_class.is_active:
            raise NotFoundError("Class", class_id)
        if day < self._today():
            raise ValidationException(
                "You cannot book a session in the past",
                code="DATE_IN_PAST",
                details={"date": day.isoformat()},
            )
        if not is_scheduled_on(ClassSchedule.from_class(fitness_class), day):
            raise ValidationException(
                f"This class does not run on {weekday_label(day)}",
                code="DATE_NOT_SCHEDULED",
                details={"date": day.isoformat()},
            )
        if self.remaining_capacity(class_id, day) <= 0:
            raise CapacityExceededError(class_id, day, int(fitness_class.capacity))
