# backend/fitbook/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from datetime import date
from functools import lru_cache
import logging
from typing import Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import settings
from ...events.publisher import EventPublisher
from ...services.availability_service import AvailabilityGate
from ...services.booking_ledger import BookingLedger
from ...services.booking_orchestrator import BookingOrchestrator
from ...services.class_service import ClassService
from ...services.message_service import MessageService
from ...services.messaging.bus import MessageBus, build_message_bus
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_message_bus_singleton() -> MessageBus:
    """Process-wide message bus."""
    return build_message_bus(settings)


def get_message_bus() -> MessageBus:
    return get_message_bus_singleton()


def get_today_fn() -> Callable[[], date]:
    return date.today


def get_availability_gate(
    db: Session = Depends(get_db), today_fn: Callable[[], date] = Depends(get_today_fn)
) -> AvailabilityGate:
    return AvailabilityGate(db, today_fn=today_fn)


def get_booking_ledger(
    db: Session = Depends(get_db), bus: MessageBus = Depends(get_message_bus)
) -> BookingLedger:
    return BookingLedger(db, event_publisher=EventPublisher(bus))


def get_booking_orchestrator(
    db: Session = Depends(get_db),
    bus: MessageBus = Depends(get_message_bus),
    today_fn: Callable[[], date] = Depends(get_today_fn),
) -> BookingOrchestrator:
    """
    Get the booking orchestrator with real-time delivery wired in.

    Args:
        db: Database session
        bus: Message bus for post-commit delivery
        today_fn: Clock used to reject past dates
    """
    return BookingOrchestrator(db, bus=bus, today_fn=today_fn)


def get_class_service(db: Session = Depends(get_db)) -> ClassService:
    return ClassService(db)


def get_message_service(
    db: Session = Depends(get_db), bus: MessageBus = Depends(get_message_bus)
) -> MessageService:
    return MessageService(db, bus)
