"""Tests for attaching bookings to the student-trainer conversation."""

from datetime import date, time
import logging

import pytest

from fitbook.core.exceptions import ValidationException
from fitbook.repositories.conversation_repository import ConversationRepository
from fitbook.repositories.message_repository import MessageRepository
from fitbook.services.booking_ledger import BookingLedger
from fitbook.services.message_service import MessageService
from fitbook.services.thread_linker import (
    ThreadLinker,
    format_session_date,
    format_session_time,
)
from fitbook.services.verification_service import VerificationIssuer

from ..helpers import MONDAY, WEDNESDAY

ADVISORY = "Pay at the class only."


@pytest.fixture
def linker(db, bus):
    return ThreadLinker(db, message_service=MessageService(db, bus), payment_advisory=ADVISORY)


def _booked(db, student, fitness_class, day):
    ledger = BookingLedger(db)
    with ledger.transaction():
        booking = ledger.create(student.id, fitness_class.id, day)
        VerificationIssuer(db, code_factory=lambda: f"AAAAAA-{day:%d}{day:%m}00").issue(booking)
    return booking


def test_formatting_helpers():
    assert format_session_date(date(2030, 1, 7)) == "Monday, January 7, 2030"
    assert format_session_time(time(6, 30)) == "06:30"
    assert format_session_time(None) == ""


class TestLinkBooking:
    def test_logs_link_with_info_enabled(self, db, linker, student, trainer, yoga_class, caplog):
        caplog.set_level(logging.INFO)
        booking = _booked(db, student, yoga_class, MONDAY)

        with linker.transaction():
            conversation_id = linker.link_booking(student.id, trainer.id, booking.id)

        [record] = [r for r in caplog.records if getattr(r, "operation", None) == "link_booking"]
        assert record.conversation_id == conversation_id
        assert record.conversation_created is True

    def test_creates_conversation_and_posts_summary(
        self, db, linker, student, trainer, yoga_class
    ):
        booking = _booked(db, student, yoga_class, MONDAY)

        with linker.transaction():
            conversation_id = linker.link_booking(student.id, trainer.id, booking.id)

        conversation = ConversationRepository(db).get_by_id(conversation_id)
        assert conversation.linked_booking_id == booking.id

        [message] = MessageRepository(db).list_for_conversation(conversation_id)
        assert message.sender_id == student.id
        assert message.recipient_id == trainer.id
        assert message.content.splitlines() == [
            "New booking: Morning Yoga",
            "Date: Monday, January 7, 2030",
            "Time: 18:00",
            f"Verification code: {booking.verification_code}",
            "",
            ADVISORY,
        ]

    def test_summary_counts_as_unread_for_trainer(self, db, linker, student, trainer, yoga_class):
        booking = _booked(db, student, yoga_class, MONDAY)

        with linker.transaction():
            linker.link_booking(student.id, trainer.id, booking.id)

        assert MessageRepository(db).count_unread(trainer.id) == 1
        assert MessageRepository(db).count_unread(student.id) == 0

    def test_second_booking_reuses_conversation(self, db, linker, student, trainer, yoga_class):
        first = _booked(db, student, yoga_class, MONDAY)
        second = _booked(db, student, yoga_class, WEDNESDAY)

        with linker.transaction():
            first_id = linker.link_booking(student.id, trainer.id, first.id)
        with linker.transaction():
            second_id = linker.link_booking(student.id, trainer.id, second.id)

        assert first_id == second_id
        conversation = ConversationRepository(db).get_by_id(second_id)
        assert conversation.linked_booking_id == second.id
        assert len(MessageRepository(db).list_for_conversation(second_id)) == 2

    def test_delivery_waits_for_commit(self, db, linker, student, trainer, yoga_class, bus):
        booking = _booked(db, student, yoga_class, MONDAY)
        bus.clear()

        with linker.transaction():
            conversation_id = linker.link_booking(student.id, trainer.id, booking.id)
            assert bus.published == []

        channels = [channel for channel, _ in bus.published]
        assert channels == [
            f"conversation:{conversation_id}",
            f"user:{trainer.id}",
            f"user:{trainer.id}",
        ]
        unread = bus.events_for(f"user:{trainer.id}")[-1]
        assert unread["payload"] == {"user_id": trainer.id, "unread_count": 1}

    def test_rejects_mismatched_participants(
        self, db, linker, student, other_student, trainer, yoga_class
    ):
        booking = _booked(db, student, yoga_class, MONDAY)

        with pytest.raises(ValidationException) as exc_info:
            linker.link_booking(other_student.id, trainer.id, booking.id)

        assert exc_info.value.code == "BOOKING_PARTICIPANT_MISMATCH"


class TestLinkEnrollment:
    def test_single_summary_for_all_sessions(self, db, linker, student, trainer, yoga_class):
        bookings = [_booked(db, student, yoga_class, day) for day in (MONDAY, WEDNESDAY)]

        with linker.transaction():
            conversation_id = linker.link_enrollment(
                student.id, trainer.id, [b.id for b in bookings]
            )

        [message] = MessageRepository(db).list_for_conversation(conversation_id)
        lines = message.content.splitlines()
        assert lines[0] == "New enrollment: Morning Yoga (2 sessions)"
        assert lines[1].startswith("- Monday, January 7, 2030 at 18:00: code ")
        assert lines[2].startswith("- Wednesday, January 9, 2030 at 18:00: code ")
        assert lines[-1] == ADVISORY
        conversation = ConversationRepository(db).get_by_id(conversation_id)
        assert conversation.linked_booking_id == bookings[-1].id

    def test_empty_enrollment(self, linker, student, trainer):
        with pytest.raises(ValidationException):
            linker.link_enrollment(student.id, trainer.id, [])
