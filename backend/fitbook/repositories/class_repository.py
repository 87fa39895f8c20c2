# backend/fitbook/repositories/class_repository.py
"""
Class Repository for the fitbook booking engine.

Data access for trainer-defined recurring classes.
"""

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_QUERY_LIMIT
from ..core.exceptions import RepositoryException
from ..models.fitness_class import FitnessClass
from .base_repository import BaseRepository


class ClassRepository(BaseRepository[FitnessClass]):
    def __init__(self, db: Session):
        super().__init__(db, FitnessClass)

    def list_for_trainer(
        self, trainer_id: str, include_archived: bool = False, limit: int = DEFAULT_QUERY_LIMIT
    ) -> List[FitnessClass]:
        try:
            query = self._query().filter(FitnessClass.trainer_id == trainer_id)
            if not include_archived:
                query = query.filter(FitnessClass.is_active.is_(True))
            return query.order_by(FitnessClass.created_at.desc()).limit(limit).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing classes for trainer {trainer_id}: {str(e)}")
            raise RepositoryException(f"Failed to list classes: {str(e)}")
