"""Tests for the pure schedule helpers."""

from datetime import date, datetime, time

import pytest

from fitbook.core.exceptions import ValidationException
from fitbook.services.recurrence import (
    ClassSchedule,
    is_scheduled_on,
    normalize_schedule_days,
    resolve_dates,
    weekday_label,
)

MON_WED_FRI = ClassSchedule(days=("Mon", "Wed", "Fri"), time=time(18, 0))


class TestResolveDates:
    def test_two_week_window_from_monday(self):
        dates = resolve_dates(MON_WED_FRI, date(2030, 1, 7), 14)

        assert dates == [
            date(2030, 1, 7),
            date(2030, 1, 9),
            date(2030, 1, 11),
            date(2030, 1, 14),
            date(2030, 1, 16),
            date(2030, 1, 18),
        ]

    def test_window_end_is_exclusive(self):
        # Mon 2030-01-07 + 7 days stops before the next Monday
        dates = resolve_dates(MON_WED_FRI, date(2030, 1, 7), 7)

        assert date(2030, 1, 14) not in dates
        assert len(dates) == 3

    def test_window_starting_mid_week(self):
        dates = resolve_dates(MON_WED_FRI, date(2030, 1, 10), 5)

        assert dates == [date(2030, 1, 11), date(2030, 1, 14)]

    def test_datetime_start_is_reduced_to_its_date(self):
        dates = resolve_dates(MON_WED_FRI, datetime(2030, 1, 7, 23, 59), 1)

        assert dates == [date(2030, 1, 7)]

    def test_empty_schedule_yields_no_dates(self):
        schedule = ClassSchedule(days=(), time=time(9, 0))

        assert resolve_dates(schedule, date(2030, 1, 7), 14) == []

    def test_results_are_sorted_and_unique(self):
        dates = resolve_dates(MON_WED_FRI, date(2030, 1, 1), 60)

        assert dates == sorted(set(dates))
        assert all(weekday_label(d) in MON_WED_FRI.days for d in dates)

    def test_default_window_comes_from_settings(self, monkeypatch):
        from fitbook.core.config import settings

        monkeypatch.setattr(settings, "booking_window_days", 3)

        assert resolve_dates(MON_WED_FRI, date(2030, 1, 7)) == [
            date(2030, 1, 7),
            date(2030, 1, 9),
        ]

    @pytest.mark.parametrize("length", [0, -1, True, 2.5, "7"])
    def test_rejects_invalid_window(self, length):
        with pytest.raises(ValidationException) as exc_info:
            resolve_dates(MON_WED_FRI, date(2030, 1, 7), length)

        assert exc_info.value.code == "INVALID_WINDOW"


class TestScheduleDays:
    def test_normalizes_case_and_orders_by_week(self):
        assert normalize_schedule_days(["fri", "MON", " Wed "]) == ("Mon", "Wed", "Fri")

    def test_unknown_label(self):
        with pytest.raises(ValidationException) as exc_info:
            normalize_schedule_days(["Mon", "Funday"])

        assert exc_info.value.code == "INVALID_SCHEDULE_DAY"

    def test_duplicate_label(self):
        with pytest.raises(ValidationException) as exc_info:
            normalize_schedule_days(["Mon", "mon"])

        assert exc_info.value.code == "DUPLICATE_SCHEDULE_DAY"

    def test_is_scheduled_on(self):
        assert is_scheduled_on(MON_WED_FRI, date(2030, 1, 9)) is True
        assert is_scheduled_on(MON_WED_FRI, date(2030, 1, 8)) is False
        assert weekday_label(date(2030, 1, 13)) == "Sun"
