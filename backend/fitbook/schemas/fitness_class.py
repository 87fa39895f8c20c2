# backend/fitbook/schemas/fitness_class.py
"""Class schemas: trainer input and public representation of a recurring class."""

from datetime import time
from decimal import Decimal
import re
from typing import List, Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_CLASS_NAME_LENGTH
from ..core.enums import ClassType
from ..core.exceptions import ValidationException
from ..services.recurrence import normalize_schedule_days
from ._strict_base import StrictModel, StrictRequestModel

TIME_REGEX = re.compile(r"^\d{1,2}:\d{2}$")


def _parse_time(value: object) -> object:
    if isinstance(value, str):
        candidate = value.strip()
        if not TIME_REGEX.fullmatch(candidate):
            raise ValueError(f"Invalid time format: {value}. Expected HH:MM format.")
        hour, minute = candidate.split(":")
        return time(int(hour), int(minute))
    return value


def _normalize_days(value: List[str]) -> List[str]:
    try:
        return list(normalize_schedule_days(value))
    except ValidationException as exc:
        raise ValueError(exc.message) from exc


class ClassCreate(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=MAX_CLASS_NAME_LENGTH)
    description: Optional[str] = Field(None, max_length=2000)
    capacity: int = Field(..., gt=0, le=500)
    duration_minutes: int = Field(..., gt=0, le=720)
    price: Decimal = Field(Decimal("0"), ge=0)
    schedule_days: List[str] = Field(..., description="Weekday labels, e.g. ['Mon', 'Wed']")
    schedule_time: time = Field(..., description="Start time, HH:MM")
    class_type: ClassType = ClassType.INDOOR

    @field_validator("schedule_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        return _parse_time(v)

    @field_validator("schedule_days")
    @classmethod
    def validate_days(cls, v: List[str]) -> List[str]:
        return _normalize_days(v)


class ClassUpdate(StrictRequestModel):
    """Partial update; omitted fields are left unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=MAX_CLASS_NAME_LENGTH)
    description: Optional[str] = Field(None, max_length=2000)
    capacity: Optional[int] = Field(None, gt=0, le=500)
    duration_minutes: Optional[int] = Field(None, gt=0, le=720)
    price: Optional[Decimal] = Field(None, ge=0)
    schedule_days: Optional[List[str]] = None
    schedule_time: Optional[time] = None
    class_type: Optional[ClassType] = None

    @field_validator("schedule_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        return _parse_time(v)

    @field_validator("schedule_days")
    @classmethod
    def validate_days(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _normalize_days(v) if v is not None else v


class ClassResponse(StrictModel):
    id: str
    trainer_id: str
    name: str
    description: Optional[str] = None
    capacity: int
    duration_minutes: int
    price: float
    schedule_days: List[str]
    schedule_time: str
    class_type: str
    is_active: bool
