# backend/tests/conftest.py
"""
Shared pytest fixtures.

Every test gets its own in-memory SQLite database with the full schema,
a small cast of users, and one recurring class. "Today" is pinned to
Monday 2030-01-07 so schedule arithmetic is deterministic.
"""

import os

# Point the module-level engine at a throwaway database BEFORE any fitbook imports
os.environ.setdefault("FITBOOK_DATABASE_URL", "sqlite://")
os.environ.setdefault("FITBOOK_MESSAGE_BUS_URL", "")

import pytest
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fitbook import models  # noqa: F401  (registers tables)
from fitbook.core.enums import RoleName
from fitbook.core.identity import Identity
from fitbook.database import Base, build_engine
from fitbook.models.fitness_class import FitnessClass
from fitbook.models.user import User
from fitbook.services.booking_orchestrator import BookingOrchestrator
from fitbook.services.messaging.bus import InMemoryMessageBus

from .helpers import make_class, today


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def bus() -> InMemoryMessageBus:
    return InMemoryMessageBus()


def _create_user(db: Session, username: str, role: RoleName) -> User:
    user = User(username=username, role=role.value)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def student(db) -> User:
    return _create_user(db, "sam.student", RoleName.STUDENT)


@pytest.fixture
def other_student(db) -> User:
    return _create_user(db, "olive.student", RoleName.STUDENT)


@pytest.fixture
def trainer(db) -> User:
    return _create_user(db, "tara.trainer", RoleName.TRAINER)


@pytest.fixture
def other_trainer(db) -> User:
    return _create_user(db, "theo.trainer", RoleName.TRAINER)


@pytest.fixture
def student_identity(student) -> Identity:
    return Identity(user_id=student.id, role=RoleName.STUDENT)


@pytest.fixture
def other_student_identity(other_student) -> Identity:
    return Identity(user_id=other_student.id, role=RoleName.STUDENT)


@pytest.fixture
def trainer_identity(trainer) -> Identity:
    return Identity(user_id=trainer.id, role=RoleName.TRAINER)


@pytest.fixture
def other_trainer_identity(other_trainer) -> Identity:
    return Identity(user_id=other_trainer.id, role=RoleName.TRAINER)


@pytest.fixture
def yoga_class(db, trainer) -> FitnessClass:
    """Mon/Wed/Fri at 18:00 with two seats."""
    return make_class(db, trainer)


@pytest.fixture
def orchestrator(db, bus) -> BookingOrchestrator:
    return BookingOrchestrator(db, bus=bus, today_fn=today)
