"""Booking domain events."""
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional


@dataclass
class BookingCreated:
    """Fired after a booking is committed."""

    booking_id: str
    class_id: str
    student_id: str
    trainer_id: str
    booking_date: date
    created_at: datetime
    enrollment_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingConfirmed:
    """Fired after the trainer acknowledges a booking."""

    booking_id: str
    confirmed_by: str
    confirmed_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingAttended:
    """Fired after the trainer verifies attendance."""

    booking_id: str
    verified_by: str
    attended_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingCancelled:
    """Fired after a booking is cancelled."""

    booking_id: str
    cancelled_by: str
    cancelled_at: datetime
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
