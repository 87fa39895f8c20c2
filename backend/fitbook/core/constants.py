"""Application-wide constants for the fitbook booking engine."""

from __future__ import annotations

BRAND_NAME = "fitbook"

# Weekday labels in ``date.weekday()`` order (Monday == 0)
WEEKDAY_LABELS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

# Booking windows
DEFAULT_BOOKING_WINDOW_DAYS = 14
DAYS_PER_WEEK = 7

# Text constraints
MAX_CLASS_NAME_LENGTH = 120
MAX_MESSAGE_LENGTH = 1000
MAX_REASON_LENGTH = 255

# Shown to both parties on every booking summary
PAYMENT_SAFETY_ADVISORY = (
    "Payment at meeting only: pay your trainer in person at the class. "
    "Never send money through the chat or any other channel."
)

CANCELLATION_REASONS: tuple[str, ...] = (
    "Schedule conflict",
    "Feeling unwell",
    "Work emergency",
    "Personal reasons",
    "Weather conditions",
    "Transportation issues",
    "Other",
)

# Query limits
DEFAULT_QUERY_LIMIT = 100
