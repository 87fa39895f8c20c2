# backend/fitbook/repositories/__init__.py
"""
Repository layer for the fitbook booking engine.

Repositories own every query; services never touch the session directly
except to commit or roll back.
"""

from .base_repository import BaseRepository, IRepository
from .booking_repository import BookingRepository
from .capacity_repository import CapacityRepository
from .class_repository import ClassRepository
from .conversation_repository import ConversationRepository
from .factory import RepositoryFactory
from .message_repository import MessageRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "CapacityRepository",
    "ClassRepository",
    "ConversationRepository",
    "IRepository",
    "MessageRepository",
    "RepositoryFactory",
    "UserRepository",
]
