# backend/fitbook/api/dependencies/__init__.py
"""FastAPI dependencies: database session, acting identity and services."""

from .database import get_db
from .identity import get_identity
from .services import (
    get_availability_gate,
    get_booking_ledger,
    get_booking_orchestrator,
    get_class_service,
    get_message_bus,
    get_message_service,
    get_today_fn,
)

__all__ = [
    "get_availability_gate",
    "get_booking_ledger",
    "get_booking_orchestrator",
    "get_class_service",
    "get_db",
    "get_identity",
    "get_message_bus",
    "get_message_service",
    "get_today_fn",
]
