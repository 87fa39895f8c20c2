# backend/fitbook/services/messaging/events.py
"""
Messaging event type definitions and builders.

All events follow this structure:
{
    "type": str,           # Event type identifier
    "schema_version": int, # Schema version (currently 1)
    "timestamp": str,      # ISO 8601 timestamp
    "payload": dict        # Event-specific data
}
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class EventType(str, Enum):
    """Valid real-time event types."""

    NEW_MESSAGE = "new_message"
    READ_RECEIPT = "read_receipt"
    UNREAD_COUNT = "unread_count"
    BOOKING_EVENT = "booking_event"


# Increment when payload structure changes
SCHEMA_VERSION = 1


def build_event(event_type: EventType, payload: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": event_type.value,
        "schema_version": SCHEMA_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "payload": payload,
    }


def build_new_message_event(
    message_id: str,
    conversation_id: str,
    sender_id: str,
    recipient_id: str,
    content: str,
    created_at: Optional[datetime],
    booking_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a new_message event."""
    return build_event(
        EventType.NEW_MESSAGE,
        {
            "message": {
                "id": message_id,
                "content": content,
                "sender_id": sender_id,
                "recipient_id": recipient_id,
                "created_at": created_at.isoformat() if created_at else None,
            },
            "conversation_id": conversation_id,
            "booking_id": booking_id,
        },
    )


def build_read_receipt_event(conversation_id: str, reader_id: str, count: int) -> Dict[str, Any]:
    return build_event(
        EventType.READ_RECEIPT,
        {"conversation_id": conversation_id, "reader_id": reader_id, "count": count},
    )


def build_unread_count_event(user_id: str, unread_count: int) -> Dict[str, Any]:
    return build_event(EventType.UNREAD_COUNT, {"user_id": user_id, "unread_count": unread_count})


def build_booking_event(event_name: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return build_event(EventType.BOOKING_EVENT, {"event": event_name, "data": data})


def conversation_channel(conversation_id: str) -> str:
    return f"conversation:{conversation_id}"


def user_channel(user_id: str) -> str:
    return f"user:{user_id}"


BOOKINGS_CHANNEL = "bookings"
