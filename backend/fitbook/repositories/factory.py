# backend/fitbook/repositories/factory.py
"""
Repository Factory for the fitbook booking engine.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .capacity_repository import CapacityRepository
    from .class_repository import ClassRepository
    from .conversation_repository import ConversationRepository
    from .message_repository import MessageRepository
    from .user_repository import UserRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations in tests.
    """

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_class_repository(db: Session) -> "ClassRepository":
        """Create repository for recurring classes."""
        from .class_repository import ClassRepository

        return ClassRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_capacity_repository(db: Session) -> "CapacityRepository":
        """Create repository for per-session seat counters."""
        from .capacity_repository import CapacityRepository

        return CapacityRepository(db)

    @staticmethod
    def create_conversation_repository(db: Session) -> "ConversationRepository":
        from .conversation_repository import ConversationRepository

        return ConversationRepository(db)

    @staticmethod
    def create_message_repository(db: Session) -> "MessageRepository":
        from .message_repository import MessageRepository

        return MessageRepository(db)
