"""Tests for issuing verification codes to bookings."""

from itertools import chain, repeat

import pytest

from fitbook.core.exceptions import ServiceException, VerificationAlreadyIssuedError
from fitbook.services.booking_ledger import BookingLedger
from fitbook.services.verification_service import VerificationIssuer

from ..helpers import MONDAY, WEDNESDAY


@pytest.fixture
def booking(db, yoga_class, student):
    booking = BookingLedger(db).create(student.id, yoga_class.id, MONDAY)
    db.commit()
    return booking


class TestVerificationIssuer:
    def test_issues_and_stores_code(self, db, booking):
        code = VerificationIssuer(db).issue(booking)
        db.commit()

        assert booking.verification_code == code
        assert len(code) == 13

    def test_second_issue_is_refused(self, db, booking):
        issuer = VerificationIssuer(db)
        issuer.issue(booking)

        with pytest.raises(VerificationAlreadyIssuedError):
            issuer.issue(booking)

    def test_collision_is_regenerated(self, db, booking, yoga_class, other_student):
        VerificationIssuer(db, code_factory=lambda: "AAAAAA-111111").issue(booking)
        other = BookingLedger(db).create(other_student.id, yoga_class.id, WEDNESDAY)

        codes = chain(["AAAAAA-111111"], repeat("AAAAAA-222222"))
        code = VerificationIssuer(db, code_factory=lambda: next(codes)).issue(other)

        assert code == "AAAAAA-222222"

    def test_gives_up_after_max_attempts(self, db, booking, yoga_class, other_student):
        VerificationIssuer(db, code_factory=lambda: "AAAAAA-111111").issue(booking)
        other = BookingLedger(db).create(other_student.id, yoga_class.id, WEDNESDAY)

        issuer = VerificationIssuer(db, code_factory=lambda: "AAAAAA-111111", max_attempts=3)
        with pytest.raises(ServiceException) as exc_info:
            issuer.issue(other)

        assert exc_info.value.code == "VERIFICATION_CODE_EXHAUSTED"
        assert other.verification_code is None
