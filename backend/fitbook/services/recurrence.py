# backend/fitbook/services/recurrence.py
"""
Recurrence Resolver.

Turns a class's weekly pattern (a set of weekday labels plus a time of
day) into the concrete calendar dates a student can pick from. Everything
here is pure; nothing touches the database.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple, Union

from ..core.config import settings
from ..core.constants import WEEKDAY_LABELS
from ..core.exceptions import ValidationException

if TYPE_CHECKING:
    from ..models.fitness_class import FitnessClass

_LABEL_LOOKUP = {label.lower(): label for label in WEEKDAY_LABELS}


@dataclass(frozen=True)
class ClassSchedule:
    """Weekly recurrence of a class: weekday labels in week order and a start time."""

    days: Tuple[str, ...]
    time: time

    @classmethod
    def from_class(cls, fitness_class: "FitnessClass") -> "ClassSchedule":
        return cls(days=tuple(fitness_class.schedule_days or ()), time=fitness_class.schedule_time)


def weekday_label(day: date) -> str:
    """Three-letter label ("Mon".."Sun") for a calendar date."""
    return WEEKDAY_LABELS[day.weekday()]


def is_scheduled_on(schedule: ClassSchedule, day: date) -> bool:
    return weekday_label(_as_date(day)) in schedule.days


def normalize_schedule_days(days: Iterable[str]) -> Tuple[str, ...]:
    """
    Validate trainer input and return the labels in week order.

    Labels are matched case-insensitively against "Mon".."Sun".

    Raises:
        ValidationException: unknown label or a day listed twice
    """
    seen: set[str] = set()
    for raw in days:
        label = _LABEL_LOOKUP.get(str(raw).strip().lower())
        if label is None:
            raise ValidationException(
                f"Unknown weekday '{raw}'",
                code="INVALID_SCHEDULE_DAY",
                details={"allowed": list(WEEKDAY_LABELS)},
            )
        if label in seen:
            raise ValidationException(
                f"Weekday '{label}' is listed more than once",
                code="DUPLICATE_SCHEDULE_DAY",
            )
        seen.add(label)
    return tuple(label for label in WEEKDAY_LABELS if label in seen)


def resolve_dates(
    schedule: ClassSchedule,
    window_start: Union[date, datetime],
    window_length_days: Optional[int] = None,
) -> List[date]:
    """
    Dates in ``[window_start, window_start + window_length_days)`` that fall on a scheduled weekday.

    Args:
        schedule: The class's weekly recurrence
        window_start: First candidate date; datetimes are reduced to their calendar date
        window_length_days: Window size, defaults to the configured booking window

    Returns:
        Chronological list without repeats; empty when the schedule has no days

    Raises:
        ValidationException: window length is not a positive integer
    """
    length = settings.booking_window_days if window_length_days is None else window_length_days
    if isinstance(length, bool) or not isinstance(length, int) or length <= 0:
        raise ValidationException(
            "Booking window must be a positive number of days",
            code="INVALID_WINDOW",
            details={"window_length_days": length},
        )

    if not schedule.days:
        return []

    start = _as_date(window_start)
    wanted = {WEEKDAY_LABELS.index(label) for label in schedule.days if label in WEEKDAY_LABELS}
    return [
        candidate
        for candidate in (start + timedelta(days=offset) for offset in range(length))
        if candidate.weekday() in wanted
    ]


def _as_date(value: Union[date, datetime]) -> date:
    # datetime is a subclass of date, so check it first
    if isinstance(value, datetime):
        return value.date()
    return value
