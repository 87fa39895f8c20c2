from .booking_events import BookingAttended, BookingCancelled, BookingConfirmed, BookingCreated
from .publisher import EventPublisher

__all__ = [
    "BookingAttended",
    "BookingCancelled",
    "BookingConfirmed",
    "BookingCreated",
    "EventPublisher",
]
