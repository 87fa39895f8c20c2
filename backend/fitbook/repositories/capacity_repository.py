# backend/fitbook/repositories/capacity_repository.py
"""
Seat counter repository.

Seats are claimed with a single conditional UPDATE that only succeeds while
``booked_count`` is below the class capacity. Two transactions racing for
the last seat serialize on the counter row; the loser's UPDATE matches no
row.
"""

from datetime import date
import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryConflictError, RepositoryException
from ..core.ulid_helper import generate_ulid
from ..models.class_session_capacity import ClassSessionCapacity
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CapacityRepository(BaseRepository[ClassSessionCapacity]):
    def __init__(self, db: Session):
        super().__init__(db, ClassSessionCapacity)

    def get_for_session(self, class_id: str, session_date: date) -> Optional[ClassSessionCapacity]:
        return self.find_one_by(class_id=class_id, session_date=session_date)

    def ensure_session_row(self, class_id: str, session_date: date) -> None:
        """Insert the counter row for a session unless it already exists."""
        values = {
            "id": generate_ulid(),
            "class_id": class_id,
            "session_date": session_date,
            "booked_count": 0,
        }
        dialect = self.dialect_name
        try:
            if dialect in ("postgresql", "sqlite"):
                insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
                stmt = insert(ClassSessionCapacity).values(**values)
                stmt = stmt.on_conflict_do_nothing(index_elements=["class_id", "session_date"])
                self.db.execute(stmt)
                return

            if self.get_for_session(class_id, session_date) is None:
                try:
                    self.create(**values)
                except RepositoryConflictError:
                    # Another transaction created it first
                    pass
        except SQLAlchemyError as e:
            self.logger.error(f"Error preparing seat counter for {class_id}@{session_date}: {e}")
            raise RepositoryException(f"Failed to prepare seat counter: {str(e)}")

    def claim_seat(self, class_id: str, session_date: date, capacity: int) -> bool:
        """
        Take one seat if any is left.

        Returns:
            True when the seat was claimed, False when the session is full
        """
        self.ensure_session_row(class_id, session_date)
        stmt = (
            update(ClassSessionCapacity)
            .where(
                ClassSessionCapacity.class_id == class_id,
                ClassSessionCapacity.session_date == session_date,
                ClassSessionCapacity.booked_count < capacity,
            )
            .values(booked_count=ClassSessionCapacity.booked_count + 1)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            self.logger.error(f"Error claiming seat for {class_id}@{session_date}: {e}")
            raise RepositoryException(f"Failed to claim seat: {str(e)}")
        return result.rowcount == 1

    def release_seat(self, class_id: str, session_date: date) -> bool:
        stmt = (
            update(ClassSessionCapacity)
            .where(
                ClassSessionCapacity.class_id == class_id,
                ClassSessionCapacity.session_date == session_date,
                ClassSessionCapacity.booked_count > 0,
            )
            .values(booked_count=ClassSessionCapacity.booked_count - 1)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            self.logger.error(f"Error releasing seat for {class_id}@{session_date}: {e}")
            raise RepositoryException(f"Failed to release seat: {str(e)}")
        if result.rowcount != 1:
            logger.warning(
                "Seat release found no claimed seat",
                extra={"class_id": class_id, "session_date": str(session_date)},
            )
            return False
        return True
