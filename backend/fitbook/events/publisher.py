"""Event publisher - pushes domain events onto the message bus."""
from datetime import date, datetime
import logging
from typing import Any, Dict, Protocol

from ..services.messaging.bus import MessageBus
from ..services.messaging.events import BOOKINGS_CHANNEL, build_booking_event

logger = logging.getLogger(__name__)


class Event(Protocol):
    """Protocol for event types."""

    def to_dict(self) -> Dict[str, Any]:
        ...


class EventPublisher:
    """Publishes domain events to the ``bookings`` channel."""

    def __init__(self, bus: MessageBus):
        self.bus = bus

    def publish(self, event: Event) -> None:
        """
        Publish an event to subscribers.

        Must only be called after the transaction that produced the event
        has committed.
        """
        event_type = type(event).__name__
        payload = event.to_dict()

        # Dates and datetimes travel as ISO strings
        for key, value in payload.items():
            if isinstance(value, (datetime, date)):
                payload[key] = value.isoformat()

        self.bus.publish(BOOKINGS_CHANNEL, build_booking_event(event_type, payload))
        logger.debug(f"Published {event_type}", extra={"event_type": event_type})
