# backend/fitbook/models/user.py
"""
User model for the fitbook booking engine.

Accounts, profiles and authentication live in an external service. The
engine keeps a minimal mirror of each account so bookings, classes and
conversations can reference users with real foreign keys.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, String
from sqlalchemy.sql import func
import ulid

from ..core.enums import RoleName
from ..database import Base


class User(Base):
    """
    Minimal account mirror.

    Attributes:
        id: ULID primary key, shared with the account service
        username: Display name shown in booking summaries
        role: One of ``student``, ``trainer`` or ``admin``
        created_at: When the mirror row was written
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    username = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False, default=RoleName.STUDENT.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("role IN ('student', 'trainer', 'admin')", name="ck_users_role"),
    )

    @property
    def is_trainer(self) -> bool:
        return self.role == RoleName.TRAINER.value

    @property
    def is_student(self) -> bool:
        return self.role == RoleName.STUDENT.value

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.username} ({self.role})>"
