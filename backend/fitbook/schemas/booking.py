# backend/fitbook/schemas/booking.py
"""Booking request and response schemas."""

from datetime import date
import re
from typing import List, Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_REASON_LENGTH
from ..core.enums import BookingPeriod
from ._strict_base import StrictModel, StrictRequestModel

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class BookingCreate(StrictRequestModel):
    trainer_id: str = Field(..., description="Trainer who runs the class")
    class_id: str = Field(..., description="Class to book")
    booking_date: date = Field(..., description="Session date, YYYY-MM-DD")
    period: BookingPeriod = BookingPeriod.ONCE

    @field_validator("booking_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        if isinstance(v, str) and not DATE_ONLY_REGEX.fullmatch(v.strip()):
            raise ValueError("booking_date must be a YYYY-MM-DD date-only string")
        return v


class BookingCancel(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)


class VerifyAttendanceRequest(StrictRequestModel):
    code: str = Field(..., min_length=6, max_length=32)


class BookingOutcomeResponse(StrictModel):
    success: bool
    booking_id: Optional[str] = None
    verification_code: Optional[str] = None
    conversation_id: Optional[str] = None
    booking_ids: List[str] = Field(default_factory=list)
    verification_codes: List[str] = Field(default_factory=list)
    enrollment_id: Optional[str] = None
    error_code: Optional[str] = None
    reason: Optional[str] = None


class BookingResponse(StrictModel):
    id: str
    class_id: str
    student_id: str
    trainer_id: str
    booking_date: Optional[str] = None
    booking_time: Optional[str] = None
    status: str
    verification_code: Optional[str] = None
    enrollment_id: Optional[str] = None
    created_at: Optional[str] = None
    confirmed_at: Optional[str] = None
    attended_at: Optional[str] = None
    cancelled_at: Optional[str] = None
    cancelled_by_id: Optional[str] = None
    cancellation_reason: Optional[str] = None
