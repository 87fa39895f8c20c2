# backend/fitbook/schemas/availability.py
"""Selectable dates and remaining seats for a class."""

from datetime import date as date_type
from typing import List

from ._strict_base import StrictModel


class ClassDatesResponse(StrictModel):
    class_id: str
    dates: List[date_type]


class DateAvailabilityResponse(StrictModel):
    date: date_type
    remaining_capacity: int
    is_bookable: bool


class ClassAvailabilityResponse(StrictModel):
    class_id: str
    window_start: date_type
    window_length_days: int
    dates: List[DateAvailabilityResponse]
