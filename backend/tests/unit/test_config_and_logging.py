"""Tests for settings validation and logging setup."""

import json
import logging

from pydantic import ValidationError
import pytest

from fitbook.core.config import Settings
from fitbook.core.logging_config import StructuredFormatter, configure_logging
from fitbook.core.request_context import (
    RequestIdFilter,
    get_request_id,
    reset_request_id,
    set_request_id,
)


class TestSettings:
    def test_defaults(self):
        config = Settings(database_url="sqlite://")

        assert config.booking_window_days == 14
        assert config.enrollment_weeks == 4
        assert config.is_sqlite is True

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("FITBOOK_BOOKING_WINDOW_DAYS", "21")

        assert Settings().booking_window_days == 21

    @pytest.mark.parametrize("field", ["booking_window_days", "enrollment_weeks"])
    def test_rejects_non_positive_windows(self, field):
        with pytest.raises(ValidationError):
            Settings(**{field: 0})

    def test_code_length_bounds(self):
        with pytest.raises(ValidationError):
            Settings(verification_code_random_length=3)
        with pytest.raises(ValidationError):
            Settings(verification_code_random_length=13)


class TestRequestContext:
    def test_set_and_reset(self):
        token = set_request_id("req-123")
        try:
            assert get_request_id() == "req-123"
        finally:
            reset_request_id(token)

        assert get_request_id() is None

    def test_filter_fills_request_id(self):
        record = logging.LogRecord("t", logging.INFO, __file__, 1, "hello", (), None)
        token = set_request_id("req-456")
        try:
            RequestIdFilter().filter(record)
        finally:
            reset_request_id(token)

        assert record.request_id == "req-456"


class TestStructuredFormatter:
    def test_includes_extra_fields(self):
        record = logging.LogRecord("fitbook.test", logging.INFO, __file__, 1, "booked", (), None)
        record.request_id = "req-1"
        record.booking_id = "b1"

        payload = json.loads(StructuredFormatter().format(record))

        assert payload["message"] == "booked"
        assert payload["request_id"] == "req-1"
        assert payload["booking_id"] == "b1"
        assert payload["level"] == "INFO"


def test_configure_logging_installs_single_handler():
    root = logging.getLogger()
    previous_handlers, previous_level = root.handlers[:], root.level
    try:
        configure_logging(Settings(log_level="debug", structured_logs=True))

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)
        assert any(isinstance(f, RequestIdFilter) for f in root.handlers[0].filters)
        assert root.level == logging.DEBUG
    finally:
        root.handlers = previous_handlers
        root.setLevel(previous_level)
