"""Tests for trainer class management."""

from datetime import time

from pydantic import ValidationError
import pytest

from fitbook.core.exceptions import (
    AuthorizationError,
    ClassHasActiveBookingsError,
    NotFoundError,
)
from fitbook.schemas.fitness_class import ClassCreate, ClassUpdate
from fitbook.services.booking_ledger import BookingLedger
from fitbook.services.class_service import ClassService

from ..helpers import MONDAY


@pytest.fixture
def class_service(db):
    return ClassService(db)


def _payload(**overrides):
    data = {
        "name": "Sunrise HIIT",
        "capacity": 8,
        "duration_minutes": 45,
        "price": "12.50",
        "schedule_days": ["thu", "Tue"],
        "schedule_time": "07:00",
        "class_type": "Outdoor",
    }
    data.update(overrides)
    return ClassCreate(**data)


class TestCreateClass:
    def test_trainer_creates_class(self, class_service, trainer_identity):
        fitness_class = class_service.create_class(trainer_identity, _payload())

        assert fitness_class.trainer_id == trainer_identity.user_id
        assert fitness_class.schedule_days == ["Tue", "Thu"]
        assert fitness_class.schedule_time == time(7, 0)
        assert fitness_class.is_active is True
        assert fitness_class.to_dict()["price"] == 12.5

    def test_student_cannot_create(self, class_service, student_identity):
        with pytest.raises(AuthorizationError):
            class_service.create_class(student_identity, _payload())

    @pytest.mark.parametrize(
        "overrides",
        [
            {"capacity": 0},
            {"duration_minutes": 0},
            {"price": "-1"},
            {"schedule_days": ["Mon", "Someday"]},
            {"schedule_days": ["Mon", "mon"]},
            {"schedule_time": "7am"},
            {"unexpected": True},
        ],
    )
    def test_invalid_payloads(self, overrides):
        with pytest.raises(ValidationError):
            _payload(**overrides)


class TestUpdateClass:
    def test_partial_update(self, class_service, trainer_identity, yoga_class):
        updated = class_service.update_class(
            trainer_identity, yoga_class.id, ClassUpdate(capacity=10, schedule_days=["sat"])
        )

        assert updated.capacity == 10
        assert updated.schedule_days == ["Sat"]
        assert updated.name == "Morning Yoga"

    def test_other_trainer_cannot_update(self, class_service, other_trainer_identity, yoga_class):
        with pytest.raises(AuthorizationError):
            class_service.update_class(
                other_trainer_identity, yoga_class.id, ClassUpdate(capacity=3)
            )

    def test_existing_bookings_keep_their_time(
        self, db, class_service, trainer_identity, yoga_class, student
    ):
        ledger = BookingLedger(db)
        with ledger.transaction():
            booking = ledger.create(student.id, yoga_class.id, MONDAY)

        class_service.update_class(
            trainer_identity, yoga_class.id, ClassUpdate(schedule_time="09:30")
        )

        db.refresh(booking)
        assert booking.booking_time == time(18, 0)


class TestArchiveClass:
    def test_archive_empty_class(self, class_service, trainer_identity, yoga_class):
        archived = class_service.archive_class(trainer_identity, yoga_class.id)

        assert archived.is_active is False
        assert archived.archived_at is not None

    def test_open_bookings_block_archive(
        self, db, class_service, trainer_identity, yoga_class, student
    ):
        ledger = BookingLedger(db)
        with ledger.transaction():
            ledger.create(student.id, yoga_class.id, MONDAY)

        with pytest.raises(ClassHasActiveBookingsError) as exc_info:
            class_service.archive_class(trainer_identity, yoga_class.id)

        assert exc_info.value.details["active_bookings"] == 1

    def test_terminal_bookings_do_not_block_archive(
        self, db, class_service, trainer_identity, student_identity, yoga_class, student
    ):
        ledger = BookingLedger(db)
        with ledger.transaction():
            booking = ledger.create(student.id, yoga_class.id, MONDAY)
        ledger.cancel(booking.id, student_identity)

        assert class_service.archive_class(trainer_identity, yoga_class.id).is_active is False

    def test_archived_class_cannot_be_updated(self, class_service, trainer_identity, yoga_class):
        class_service.archive_class(trainer_identity, yoga_class.id)

        with pytest.raises(NotFoundError):
            class_service.update_class(trainer_identity, yoga_class.id, ClassUpdate(capacity=3))
