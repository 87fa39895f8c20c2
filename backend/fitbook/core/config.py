# backend/fitbook/core/config.py
import logging
import os
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import BRAND_NAME, DEFAULT_BOOKING_WINDOW_DAYS, PAYMENT_SAFETY_ADVISORY

logger = logging.getLogger(__name__)


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment environment")
    database_url: str = Field(
        default="sqlite:///./fitbook.db",
        description="SQLAlchemy URL of the booking store",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    # Booking rules
    booking_window_days: int = Field(
        default=DEFAULT_BOOKING_WINDOW_DAYS,
        description="Days ahead a student can pick a session from",
    )
    enrollment_weeks: int = Field(
        default=4, description="Weeks covered by a multi-week enrollment"
    )

    # Verification codes
    verification_code_random_length: int = Field(
        default=6, description="Random characters appended to each verification code"
    )
    verification_code_max_attempts: int = Field(
        default=5, description="Regeneration attempts when a code collides"
    )

    # Real-time delivery
    message_bus_url: Optional[str] = Field(
        default=None,
        description="Redis URL for pub/sub delivery; in-process bus when unset",
    )
    message_bus_channel_prefix: str = Field(default=BRAND_NAME)

    payment_advisory: str = Field(default=PAYMENT_SAFETY_ADVISORY)

    # Logging
    log_level: str = Field(default="INFO")
    structured_logs: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        env_prefix="FITBOOK_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("booking_window_days", "enrollment_weeks", "verification_code_max_attempts")
    @classmethod
    def _must_be_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("verification_code_random_length")
    @classmethod
    def _code_length_bounds(cls, value: int) -> int:
        if not 4 <= value <= 12:
            raise ValueError("verification_code_random_length must be between 4 and 12")
        return value

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
