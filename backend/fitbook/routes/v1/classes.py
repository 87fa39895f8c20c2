# backend/fitbook/routes/v1/classes.py
"""
Class routes - API v1

Endpoints:
    POST / - Trainer creates a recurring class
    GET / - Classes run by a trainer
    GET /{class_id} - Class details
    PATCH /{class_id} - Trainer edits a class
    DELETE /{class_id} - Trainer archives a class
    GET /{class_id}/dates - Selectable dates in the booking window
    GET /{class_id}/availability - Remaining seats per selectable date
"""

import asyncio
from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import get_availability_gate, get_class_service, get_identity
from ...api.dependencies.services import get_today_fn
from ...core.config import settings
from ...core.exceptions import DomainException
from ...core.identity import Identity
from ...schemas.availability import (
    ClassAvailabilityResponse,
    ClassDatesResponse,
    DateAvailabilityResponse,
)
from ...schemas.fitness_class import ClassCreate, ClassResponse, ClassUpdate
from ...services.availability_service import AvailabilityGate
from ...services.class_service import ClassService
from ...services.recurrence import ClassSchedule, resolve_dates
from ._errors import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["classes-v1"])


@router.post("", response_model=ClassResponse, status_code=status.HTTP_201_CREATED)
async def create_class(
    payload: ClassCreate,
    identity: Optional[Identity] = Depends(get_identity),
    class_service: ClassService = Depends(get_class_service),
) -> ClassResponse:
    try:
        fitness_class = await asyncio.to_thread(class_service.create_class, identity, payload)
    except DomainException as e:
        handle_domain_exception(e)
    return ClassResponse(**fitness_class.to_dict())


@router.get("", response_model=List[ClassResponse])
async def list_classes(
    trainer_id: str = Query(..., description="Trainer whose classes to list"),
    include_archived: bool = Query(False),
    class_service: ClassService = Depends(get_class_service),
) -> List[ClassResponse]:
    classes = await asyncio.to_thread(class_service.list_classes, trainer_id, include_archived)
    return [ClassResponse(**fitness_class.to_dict()) for fitness_class in classes]


@router.get("/{class_id}", response_model=ClassResponse)
async def get_class(
    class_id: str, class_service: ClassService = Depends(get_class_service)
) -> ClassResponse:
    try:
        fitness_class = await asyncio.to_thread(class_service.get_class, class_id)
    except DomainException as e:
        handle_domain_exception(e)
    return ClassResponse(**fitness_class.to_dict())


@router.patch("/{class_id}", response_model=ClassResponse)
async def update_class(
    class_id: str,
    payload: ClassUpdate,
    identity: Optional[Identity] = Depends(get_identity),
    class_service: ClassService = Depends(get_class_service),
) -> ClassResponse:
    try:
        fitness_class = await asyncio.to_thread(
            class_service.update_class, identity, class_id, payload
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ClassResponse(**fitness_class.to_dict())


@router.delete("/{class_id}", response_model=ClassResponse)
async def archive_class(
    class_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    class_service: ClassService = Depends(get_class_service),
) -> ClassResponse:
    try:
        fitness_class = await asyncio.to_thread(class_service.archive_class, identity, class_id)
    except DomainException as e:
        handle_domain_exception(e)
    return ClassResponse(**fitness_class.to_dict())


@router.get("/{class_id}/dates", response_model=ClassDatesResponse)
async def get_class_dates(
    class_id: str,
    start: Optional[date] = Query(None, description="Window start, defaults to today"),
    days: int = Query(settings.booking_window_days, ge=1, le=366),
    class_service: ClassService = Depends(get_class_service),
    today_fn=Depends(get_today_fn),
) -> ClassDatesResponse:
    """Dates the class runs on, for the date picker."""
    try:
        fitness_class = await asyncio.to_thread(class_service.get_class, class_id)
        dates = resolve_dates(ClassSchedule.from_class(fitness_class), start or today_fn(), days)
    except DomainException as e:
        handle_domain_exception(e)
    return ClassDatesResponse(class_id=class_id, dates=dates)


@router.get("/{class_id}/availability", response_model=ClassAvailabilityResponse)
async def get_class_availability(
    class_id: str,
    start: Optional[date] = Query(None, description="Window start, defaults to today"),
    days: int = Query(settings.booking_window_days, ge=1, le=366),
    gate: AvailabilityGate = Depends(get_availability_gate),
    today_fn=Depends(get_today_fn),
) -> ClassAvailabilityResponse:
    window_start = start or today_fn()
    try:
        entries = await asyncio.to_thread(gate.bookable_dates, class_id, window_start, days)
    except DomainException as e:
        handle_domain_exception(e)
    return ClassAvailabilityResponse(
        class_id=class_id,
        window_start=window_start,
        window_length_days=days,
        dates=[
            DateAvailabilityResponse(
                date=entry.date,
                remaining_capacity=entry.remaining_capacity,
                is_bookable=entry.is_bookable,
            )
            for entry in entries
        ],
    )
