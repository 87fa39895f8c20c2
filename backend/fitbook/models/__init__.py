# backend/fitbook/models/__init__.py
"""
Database models for the fitbook booking engine.

Importing this package registers every table on ``Base.metadata``.
"""

from .booking import ALLOWED_TRANSITIONS, TERMINAL_STATUSES, Booking, BookingStatus
from .booking_status_transition import BookingStatusTransition
from .class_session_capacity import ClassSessionCapacity
from .conversation import Conversation, participant_pair_key
from .fitness_class import FitnessClass
from .message import Message
from .user import User

__all__ = [
    "ALLOWED_TRANSITIONS",
    "Booking",
    "BookingStatus",
    "BookingStatusTransition",
    "ClassSessionCapacity",
    "Conversation",
    "FitnessClass",
    "Message",
    "TERMINAL_STATUSES",
    "User",
    "participant_pair_key",
]
