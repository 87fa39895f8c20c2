# backend/fitbook/services/class_service.py
"""
Class Service.

Trainer-facing management of recurring classes. Classes are never
hard-deleted: archiving hides a class from booking and is refused while
any booking on it is still open.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import AuthorizationError, ClassHasActiveBookingsError, NotFoundError
from ..core.identity import Identity, require_role
from ..models.fitness_class import FitnessClass
from ..repositories.factory import RepositoryFactory
from ..schemas.fitness_class import ClassCreate, ClassUpdate
from .base import BaseService

logger = logging.getLogger(__name__)


class ClassService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    def get_class(self, class_id: str) -> FitnessClass:
        fitness_class = self.class_repository.get_by_id(class_id)
        if fitness_class is None:
            raise NotFoundError("Class", class_id)
        return fitness_class

    def list_classes(self, trainer_id: str, include_archived: bool = False) -> List[FitnessClass]:
        return self.class_repository.list_for_trainer(trainer_id, include_archived=include_archived)

    @BaseService.measure_operation("create_class")
    def create_class(self, identity: Optional[Identity], data: ClassCreate) -> FitnessClass:
        trainer = require_role(identity, RoleName.TRAINER)
        with self.transaction():
            fitness_class = self.class_repository.create(
                trainer_id=trainer.user_id,
                name=data.name,
                description=data.description,
                capacity=data.capacity,
                duration_minutes=data.duration_minutes,
                price=data.price,
                schedule_days=list(data.schedule_days),
                schedule_time=data.schedule_time,
                class_type=data.class_type.value,
                is_active=True,
            )
        self.log_operation("create_class", class_id=fitness_class.id, trainer_id=trainer.user_id)
        return fitness_class

    @BaseService.measure_operation("update_class")
    def update_class(
        self, identity: Optional[Identity], class_id: str, data: ClassUpdate
    ) -> FitnessClass:
        """
        Apply a partial update.

        Existing bookings keep the date and time they were made for.
        """
        trainer = require_role(identity, RoleName.TRAINER)
        changes = data.model_dump(exclude_unset=True)
        if "class_type" in changes and changes["class_type"] is not None:
            changes["class_type"] = changes["class_type"].value
        with self.transaction():
            fitness_class = self._owned_class(trainer, class_id)
            if not fitness_class.is_active:
                raise NotFoundError("Class", class_id)
            updates = {key: value for key, value in changes.items() if value is not None}
            self.class_repository.update(class_id, **updates)
        return fitness_class

    @BaseService.measure_operation("archive_class")
    def archive_class(self, identity: Optional[Identity], class_id: str) -> FitnessClass:
        """
        Archive a class.

        Raises:
            ClassHasActiveBookingsError: some booking is still requested or confirmed
        """
        trainer = require_role(identity, RoleName.TRAINER)
        with self.transaction():
            fitness_class = self._owned_class(trainer, class_id)
            open_bookings = self.booking_repository.count_non_terminal_for_class(class_id)
            if open_bookings:
                raise ClassHasActiveBookingsError(class_id, open_bookings)
            if fitness_class.is_active:
                fitness_class.archive()
                self.class_repository.flush()
        self.log_operation("archive_class", class_id=class_id)
        return fitness_class

    def _owned_class(self, trainer: Identity, class_id: str) -> FitnessClass:
        fitness_class = self.get_class(class_id)
        if fitness_class.trainer_id != trainer.user_id:
            raise AuthorizationError("You can only manage your own classes")
        return fitness_class
