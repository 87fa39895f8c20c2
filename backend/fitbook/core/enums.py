# backend/fitbook/core/enums.py
"""
Core enums for the fitbook booking engine.

Role names are supplied by the external account service; the engine only
needs to tell students from trainers.
"""

from enum import Enum


class RoleName(str, Enum):
    """Roles an acting identity can carry."""

    ADMIN = "admin"
    TRAINER = "trainer"
    STUDENT = "student"


class BookingPeriod(str, Enum):
    """How many weeks a single confirmation enrolls the student for."""

    ONCE = "once"
    FOUR_WEEKS = "4weeks"


class ClassType(str, Enum):
    """Where a class takes place."""

    INDOOR = "Indoor"
    OUTDOOR = "Outdoor"
    HOME = "Home"
