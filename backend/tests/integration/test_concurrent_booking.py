"""
Two sessions competing for the same seat against a file-backed database.

Both students see the session as bookable before either writes. The writes
then run one after the other, each in its own committed transaction, so the
second writer acts on a stale gate answer and is turned away by the
write-time check, never by the gate. The transactions do not overlap: SQLite
serializes writers, and a truly concurrent second writer would get a
"database is locked" error rather than a seat.
"""

import pytest
from sqlalchemy.orm import sessionmaker

from fitbook.core.enums import RoleName
from fitbook.core.exceptions import CapacityExceededError, DuplicateBookingError
from fitbook.database import Base, build_engine
from fitbook.models.booking import Booking
from fitbook.models.user import User
from fitbook.repositories.capacity_repository import CapacityRepository
from fitbook.services.availability_service import AvailabilityGate
from fitbook.services.booking_ledger import BookingLedger

from ..helpers import MONDAY, make_class, today


@pytest.fixture
def file_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sessions(file_engine):
    factory = sessionmaker(bind=file_engine, autoflush=False, expire_on_commit=False)
    opened = [factory() for _ in range(3)]
    yield opened
    for session in opened:
        session.rollback()
        session.close()


@pytest.fixture
def seeded(sessions):
    setup = sessions[0]
    trainer = User(username="tara.trainer", role=RoleName.TRAINER.value)
    alice = User(username="alice", role=RoleName.STUDENT.value)
    bob = User(username="bob", role=RoleName.STUDENT.value)
    setup.add_all([trainer, alice, bob])
    setup.commit()
    fitness_class = make_class(setup, trainer, capacity=1, schedule_days=("Mon",))
    return fitness_class.id, alice.id, bob.id, trainer


def test_second_writer_is_rejected_at_write_time(sessions, seeded):
    class_id, alice_id, bob_id, _ = seeded
    _, session_a, session_b = sessions

    gate_a = AvailabilityGate(session_a, today_fn=today)
    gate_b = AvailabilityGate(session_b, today_fn=today)
    assert gate_a.is_bookable(class_id, MONDAY) is True
    assert gate_b.is_bookable(class_id, MONDAY) is True
    session_a.commit()
    session_b.commit()

    ledger_a = BookingLedger(session_a)
    with ledger_a.transaction():
        ledger_a.create(alice_id, class_id, MONDAY)

    ledger_b = BookingLedger(session_b)
    with pytest.raises(CapacityExceededError):
        with ledger_b.transaction():
            ledger_b.create(bob_id, class_id, MONDAY)

    assert session_b.query(Booking).count() == 1
    counter = CapacityRepository(session_b).get_for_session(class_id, MONDAY)
    assert counter.booked_count == 1


def test_duplicate_race_is_caught_by_unique_index(sessions, seeded, monkeypatch):
    _, alice_id, _, trainer = seeded
    setup, session_a, session_b = sessions
    roomy_class_id = make_class(setup, trainer, name="Open Gym", capacity=5).id

    ledger_a = BookingLedger(session_a)
    ledger_b = BookingLedger(session_b)
    # Session B checked for an existing booking before session A's was written
    monkeypatch.setattr(
        ledger_b.booking_repository, "find_active_for_session", lambda *args: None
    )

    with ledger_a.transaction():
        ledger_a.create(alice_id, roomy_class_id, MONDAY)

    with pytest.raises(DuplicateBookingError):
        with ledger_b.transaction():
            ledger_b.create(alice_id, roomy_class_id, MONDAY)

    # The losing writer's seat claim was rolled back with it
    counter = CapacityRepository(session_b).get_for_session(roomy_class_id, MONDAY)
    assert counter.booked_count == 1
    assert session_b.query(Booking).filter_by(class_id=roomy_class_id).count() == 1
