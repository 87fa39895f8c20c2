"""Tests for the advisory availability gate."""

import pytest

from fitbook.core.exceptions import CapacityExceededError, NotFoundError, ValidationException
from fitbook.services.availability_service import AvailabilityGate
from fitbook.services.booking_ledger import BookingLedger

from ..helpers import FRIDAY, LAST_FRIDAY, MONDAY, TODAY, TUESDAY, WEDNESDAY, today


@pytest.fixture
def gate(db):
    return AvailabilityGate(db, today_fn=today)


class TestAvailabilityGate:
    def test_empty_class_has_full_capacity(self, gate, yoga_class):
        assert gate.remaining_capacity(yoga_class.id, MONDAY) == 2
        assert gate.is_bookable(yoga_class.id, MONDAY) is True

    def test_live_bookings_reduce_capacity(self, db, gate, yoga_class, student, other_student):
        ledger = BookingLedger(db)
        ledger.create(student.id, yoga_class.id, MONDAY)
        ledger.create(other_student.id, yoga_class.id, MONDAY)
        db.commit()

        assert gate.remaining_capacity(yoga_class.id, MONDAY) == 0
        assert gate.is_bookable(yoga_class.id, MONDAY) is False
        with pytest.raises(CapacityExceededError):
            gate.check_bookable(yoga_class.id, MONDAY)

    def test_unscheduled_weekday(self, gate, yoga_class):
        assert gate.is_bookable(yoga_class.id, TUESDAY) is False
        with pytest.raises(ValidationException) as exc_info:
            gate.check_bookable(yoga_class.id, TUESDAY)

        assert exc_info.value.code == "DATE_NOT_SCHEDULED"

    def test_past_date(self, gate, yoga_class):
        assert gate.is_bookable(yoga_class.id, LAST_FRIDAY) is False
        with pytest.raises(ValidationException) as exc_info:
            gate.check_bookable(yoga_class.id, LAST_FRIDAY)

        assert exc_info.value.code == "DATE_IN_PAST"

    def test_archived_class(self, db, gate, yoga_class):
        yoga_class.archive()
        db.commit()

        assert gate.is_bookable(yoga_class.id, MONDAY) is False
        with pytest.raises(NotFoundError):
            gate.check_bookable(yoga_class.id, MONDAY)

    def test_unknown_class(self, gate):
        with pytest.raises(NotFoundError):
            gate.remaining_capacity("01HZZZZZZZZZZZZZZZZZZZZZZZ", MONDAY)

    def test_bookable_dates_window(self, db, gate, yoga_class, student, other_student):
        ledger = BookingLedger(db)
        ledger.create(student.id, yoga_class.id, WEDNESDAY)
        ledger.create(other_student.id, yoga_class.id, WEDNESDAY)
        ledger.create(student.id, yoga_class.id, FRIDAY)
        db.commit()

        entries = gate.bookable_dates(yoga_class.id, TODAY, 7)

        assert [(e.date, e.remaining_capacity, e.is_bookable) for e in entries] == [
            (MONDAY, 2, True),
            (WEDNESDAY, 0, False),
            (FRIDAY, 1, True),
        ]

    def test_bookable_dates_marks_past_dates_unbookable(self, gate, yoga_class):
        entries = gate.bookable_dates(yoga_class.id, LAST_FRIDAY, 4)

        assert [(e.date, e.is_bookable) for e in entries] == [
            (LAST_FRIDAY, False),
            (MONDAY, True),
        ]
