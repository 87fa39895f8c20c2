"""Shared calendar constants and builders for tests."""

from datetime import date, time
from decimal import Decimal

from sqlalchemy.orm import Session

from fitbook.models.fitness_class import FitnessClass
from fitbook.models.user import User

TODAY = date(2030, 1, 7)  # Monday
MONDAY = TODAY
TUESDAY = date(2030, 1, 8)
WEDNESDAY = date(2030, 1, 9)
FRIDAY = date(2030, 1, 11)
NEXT_MONDAY = date(2030, 1, 14)
LAST_FRIDAY = date(2030, 1, 4)


def today() -> date:
    return TODAY


def make_class(
    db: Session,
    trainer: User,
    *,
    name: str = "Morning Yoga",
    capacity: int = 2,
    schedule_days=("Mon", "Wed", "Fri"),
    schedule_time: time = time(18, 0),
) -> FitnessClass:
    fitness_class = FitnessClass(
        trainer_id=trainer.id,
        name=name,
        description="Vinyasa flow for all levels",
        capacity=capacity,
        duration_minutes=60,
        price=Decimal("15.00"),
        schedule_days=list(schedule_days),
        schedule_time=schedule_time,
        class_type="Indoor",
        is_active=True,
    )
    db.add(fitness_class)
    db.commit()
    return fitness_class
