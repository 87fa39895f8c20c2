# backend/fitbook/models/class_session_capacity.py
"""
Per-session seat counter.

One row per (class, session date). ``booked_count`` is only ever changed by
conditional UPDATE statements so concurrent bookings cannot overshoot the
class capacity.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
import ulid

from ..database import Base


class ClassSessionCapacity(Base):
    __tablename__ = "class_session_capacity"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    class_id = Column(String(26), ForeignKey("classes.id"), nullable=False)
    session_date = Column(Date, nullable=False)
    booked_count = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("class_id", "session_date", name="uq_class_session_capacity"),
        CheckConstraint("booked_count >= 0", name="check_booked_count_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<ClassSessionCapacity {self.class_id}@{self.session_date}: {self.booked_count}>"
