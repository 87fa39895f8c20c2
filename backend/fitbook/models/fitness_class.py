# backend/fitbook/models/fitness_class.py
"""
Class model.

A class is a trainer-defined, recurring offering: a weekly set of days at
a fixed time of day, with a seat capacity that applies to every session.
Classes are never hard-deleted; archiving flips ``is_active`` off.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import ClassType
from ..database import Base


class FitnessClass(Base):
    __tablename__ = "classes"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    trainer_id = Column(String(26), ForeignKey("users.id"), nullable=False)

    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=True)
    capacity = Column(Integer, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)

    # Weekday labels in week order, e.g. ["Mon", "Wed", "Fri"]
    schedule_days = Column(JSON, nullable=False, default=list)
    schedule_time = Column(Time, nullable=False)
    class_type = Column(String(20), nullable=False, default=ClassType.INDOOR.value)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=lambda: datetime.now(timezone.utc),
    )
    archived_at = Column(DateTime(timezone=True), nullable=True)

    trainer = relationship("User", foreign_keys=[trainer_id], backref="classes")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_capacity_positive"),
        CheckConstraint("duration_minutes > 0", name="check_class_duration_positive"),
        CheckConstraint("price >= 0", name="check_class_price_non_negative"),
        CheckConstraint(
            "class_type IN ('Indoor', 'Outdoor', 'Home')", name="ck_classes_class_type"
        ),
        Index("idx_classes_trainer", "trainer_id"),
    )

    def archive(self) -> None:
        """Soft-delete the class so it can no longer be booked."""
        self.is_active = False
        self.archived_at = datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return (
            f"<FitnessClass {self.id}: {self.name} trainer={self.trainer_id} "
            f"days={self.schedule_days} time={self.schedule_time} capacity={self.capacity}>"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "trainer_id": self.trainer_id,
            "name": self.name,
            "description": self.description,
            "capacity": self.capacity,
            "duration_minutes": self.duration_minutes,
            "price": float(self.price) if self.price is not None else None,
            "schedule_days": list(self.schedule_days or []),
            "schedule_time": self.schedule_time.strftime("%H:%M") if self.schedule_time else None,
            "class_type": self.class_type,
            "is_active": self.is_active,
        }
