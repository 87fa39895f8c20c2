"""Tests for the booking ledger: creation, the status machine and seat accounting."""

import pytest

from fitbook.core.exceptions import (
    AuthorizationError,
    CapacityExceededError,
    DuplicateBookingError,
    InvalidTransitionError,
    NotFoundError,
    ValidationException,
)
from fitbook.events.publisher import EventPublisher
from fitbook.models.booking import BookingStatus
from fitbook.repositories.capacity_repository import CapacityRepository
from fitbook.services.booking_ledger import BookingLedger
from fitbook.services.messaging.events import BOOKINGS_CHANNEL
from fitbook.services.verification_service import VerificationIssuer

from ..helpers import MONDAY, TUESDAY, WEDNESDAY, make_class


@pytest.fixture
def ledger(db, bus):
    return BookingLedger(db, event_publisher=EventPublisher(bus))


@pytest.fixture
def booking(db, ledger, yoga_class, student):
    with ledger.transaction():
        booking = ledger.create(student.id, yoga_class.id, MONDAY)
    return booking


def _booking_events(bus):
    return [event["payload"]["event"] for event in bus.events_for(BOOKINGS_CHANNEL)]


class TestCreate:
    def test_creates_requested_booking(self, db, booking, yoga_class, student, trainer, bus):
        assert booking.status == BookingStatus.REQUESTED.value
        assert booking.trainer_id == trainer.id
        assert booking.booking_time == yoga_class.schedule_time
        assert _booking_events(bus) == ["BookingCreated"]

    def test_claims_a_seat(self, db, booking, yoga_class):
        counter = CapacityRepository(db).get_for_session(yoga_class.id, MONDAY)

        assert counter.booked_count == 1

    def test_duplicate_session(self, ledger, booking, yoga_class, student):
        with pytest.raises(DuplicateBookingError):
            ledger.create(student.id, yoga_class.id, MONDAY)

    def test_capacity_is_enforced(self, db, ledger, trainer, student, other_student):
        solo = make_class(db, trainer, name="Private Session", capacity=1)
        ledger.create(student.id, solo.id, MONDAY)

        with pytest.raises(CapacityExceededError):
            ledger.create(other_student.id, solo.id, MONDAY)

    def test_unscheduled_weekday(self, ledger, yoga_class, student):
        with pytest.raises(ValidationException) as exc_info:
            ledger.create(student.id, yoga_class.id, TUESDAY)

        assert exc_info.value.code == "DATE_NOT_SCHEDULED"

    def test_archived_class(self, db, ledger, yoga_class, student):
        yoga_class.archive()
        db.commit()

        with pytest.raises(NotFoundError):
            ledger.create(student.id, yoga_class.id, MONDAY)

    def test_rollback_discards_booking_and_event(self, db, ledger, yoga_class, student, bus):
        with pytest.raises(RuntimeError):
            with ledger.transaction():
                ledger.create(student.id, yoga_class.id, WEDNESDAY)
                raise RuntimeError("downstream step failed")

        assert ledger.booking_repository.count_active_for_session(yoga_class.id, WEDNESDAY) == 0
        assert CapacityRepository(db).get_for_session(yoga_class.id, WEDNESDAY) is None
        assert bus.published == []

    def test_initial_transition_is_recorded(self, ledger, booking, student):
        history = ledger.history(booking.id)

        assert [(t.from_status, t.to_status, t.actor_id) for t in history] == [
            (None, "REQUESTED", student.id)
        ]


class TestTransitions:
    def test_trainer_confirms(self, ledger, booking, trainer_identity, bus):
        confirmed = ledger.confirm(booking.id, trainer_identity)

        assert confirmed.status == BookingStatus.CONFIRMED.value
        assert confirmed.confirmed_at is not None
        assert _booking_events(bus)[-1] == "BookingConfirmed"

    def test_student_cannot_confirm(self, ledger, booking, student_identity):
        with pytest.raises(AuthorizationError):
            ledger.confirm(booking.id, student_identity)

    def test_other_trainer_cannot_confirm(self, ledger, booking, other_trainer_identity):
        with pytest.raises(AuthorizationError):
            ledger.confirm(booking.id, other_trainer_identity)

    def test_attendance_from_requested(self, ledger, booking, trainer_identity, trainer):
        attended = ledger.confirm_attendance(booking.id, trainer_identity)

        assert attended.status == BookingStatus.ATTENDED.value
        assert attended.verified_by_id == trainer.id

    def test_attendance_from_confirmed(self, ledger, booking, trainer_identity):
        ledger.confirm(booking.id, trainer_identity)

        assert ledger.confirm_attendance(booking.id, trainer_identity).status == "ATTENDED"

    def test_attended_is_terminal(self, ledger, booking, trainer_identity, student_identity):
        ledger.confirm_attendance(booking.id, trainer_identity)

        with pytest.raises(InvalidTransitionError):
            ledger.cancel(booking.id, student_identity)
        with pytest.raises(InvalidTransitionError):
            ledger.confirm(booking.id, trainer_identity)

    def test_unknown_booking(self, ledger, trainer_identity):
        with pytest.raises(NotFoundError):
            ledger.confirm("01HZZZZZZZZZZZZZZZZZZZZZZZ", trainer_identity)

    def test_anonymous_actor(self, ledger, booking):
        with pytest.raises(AuthorizationError) as exc_info:
            ledger.confirm(booking.id, None)

        assert exc_info.value.code == "AUTHENTICATION_REQUIRED"

    def test_history_follows_the_lifecycle(self, ledger, booking, trainer_identity):
        ledger.confirm(booking.id, trainer_identity)
        ledger.confirm_attendance(booking.id, trainer_identity)

        assert [t.to_status for t in ledger.history(booking.id)] == [
            "REQUESTED",
            "CONFIRMED",
            "ATTENDED",
        ]


class TestCancel:
    def test_student_cancels_and_seat_is_released(
        self, db, ledger, booking, student_identity, yoga_class
    ):
        cancelled = ledger.cancel(booking.id, student_identity, "  Feeling unwell ")

        assert cancelled.status == BookingStatus.CANCELLED.value
        assert cancelled.cancellation_reason == "Feeling unwell"
        assert cancelled.cancelled_by_id == student_identity.user_id
        assert CapacityRepository(db).get_for_session(yoga_class.id, MONDAY).booked_count == 0

    def test_trainer_can_cancel(self, ledger, booking, trainer_identity):
        assert ledger.cancel(booking.id, trainer_identity).status == "CANCELLED"

    def test_outsider_cannot_cancel(self, ledger, booking, other_student_identity):
        with pytest.raises(AuthorizationError):
            ledger.cancel(booking.id, other_student_identity)

    def test_double_cancel_is_an_error(self, ledger, booking, student_identity):
        ledger.cancel(booking.id, student_identity)

        with pytest.raises(InvalidTransitionError):
            ledger.cancel(booking.id, student_identity)

    def test_reason_length(self, ledger, booking, student_identity):
        with pytest.raises(ValidationException) as exc_info:
            ledger.cancel(booking.id, student_identity, "x" * 300)

        assert exc_info.value.code == "REASON_TOO_LONG"

    def test_rebooking_after_cancel(self, ledger, booking, student_identity, yoga_class, student):
        ledger.cancel(booking.id, student_identity)

        with ledger.transaction():
            again = ledger.create(student.id, yoga_class.id, MONDAY)

        assert again.id != booking.id

    def test_can_cancel(self, ledger, booking, student_identity, other_student_identity):
        assert ledger.can_cancel(booking.id, student_identity) is True
        assert ledger.can_cancel(booking.id, other_student_identity) is False

        ledger.cancel(booking.id, student_identity)
        assert ledger.can_cancel(booking.id, student_identity) is False


class TestVerifyAttendance:
    def test_code_marks_attended(self, db, ledger, booking, trainer_identity):
        with ledger.transaction():
            code = VerificationIssuer(db).issue(booking)

        attended = ledger.verify_attendance(code.lower().replace("-", " "), trainer_identity)

        assert attended.id == booking.id
        assert attended.status == "ATTENDED"

    def test_code_does_not_bypass_ownership(self, db, ledger, booking, other_trainer_identity):
        with ledger.transaction():
            code = VerificationIssuer(db).issue(booking)

        with pytest.raises(AuthorizationError):
            ledger.verify_attendance(code, other_trainer_identity)

    def test_unknown_code(self, ledger, trainer_identity):
        with pytest.raises(NotFoundError):
            ledger.verify_attendance("ZZZZZZ-ZZZZZZ", trainer_identity)

    def test_get_booking_requires_participant(
        self, ledger, booking, student_identity, other_student_identity
    ):
        assert ledger.get_booking(booking.id, student_identity).id == booking.id
        with pytest.raises(AuthorizationError):
            ledger.get_booking(booking.id, other_student_identity)
