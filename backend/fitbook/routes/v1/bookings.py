# backend/fitbook/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to the orchestrator and the ledger.

Endpoints:
    POST / - Confirm a booking (single session or multi-week enrollment)
    GET / - Bookings for the caller
    GET /enrollments/{enrollment_id} - Every session of a multi-week enrollment
    POST /verify - Trainer enters a student's verification code
    GET /{booking_id} - Booking details for a participant
    GET /{booking_id}/can-cancel - Whether the caller may cancel
    POST /{booking_id}/confirm - Trainer acknowledges the booking
    POST /{booking_id}/attendance - Trainer marks the student attended
    POST /{booking_id}/cancel - Student or trainer cancels
"""

import asyncio
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import get_booking_ledger, get_booking_orchestrator, get_identity
from ...core.exceptions import DomainException
from ...core.identity import Identity
from ...schemas.booking import (
    BookingCancel,
    BookingCreate,
    BookingOutcomeResponse,
    BookingResponse,
    VerifyAttendanceRequest,
)
from ...services.booking_ledger import BookingLedger
from ...services.booking_orchestrator import BookingOrchestrator
from ._errors import handle_domain_exception

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


@router.post("", response_model=BookingOutcomeResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    identity: Optional[Identity] = Depends(get_identity),
    orchestrator: BookingOrchestrator = Depends(get_booking_orchestrator),
) -> BookingOutcomeResponse:
    """Book a class for the calling student and return the verification code."""
    try:
        outcome = await asyncio.to_thread(
            orchestrator.place_booking,
            identity,
            identity.user_id if identity else "",
            payload.trainer_id,
            payload.class_id,
            payload.booking_date,
            payload.period,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return BookingOutcomeResponse(**outcome.to_dict())


@router.get("", response_model=List[BookingResponse])
async def list_bookings(
    include_cancelled: bool = Query(False),
    identity: Optional[Identity] = Depends(get_identity),
    ledger: BookingLedger = Depends(get_booking_ledger),
) -> List[BookingResponse]:
    try:
        bookings = await asyncio.to_thread(ledger.list_bookings, identity, include_cancelled)
    except DomainException as e:
        handle_domain_exception(e)
    return [BookingResponse(**booking.to_dict()) for booking in bookings]


@router.get("/enrollments/{enrollment_id}", response_model=List[BookingResponse])
async def get_enrollment(
    enrollment_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    ledger: BookingLedger = Depends(get_booking_ledger),
) -> List[BookingResponse]:
    try:
        bookings = await asyncio.to_thread(ledger.get_enrollment, enrollment_id, identity)
    except DomainException as e:
        handle_domain_exception(e)
    return [BookingResponse(**booking.to_dict()) for booking in bookings]


@router.post("/verify", response_model=BookingResponse)
async def verify_attendance(
    payload: VerifyAttendanceRequest,
    identity: Optional[Identity] = Depends(get_identity),
    ledger: BookingLedger = Depends(get_booking_ledger),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(ledger.verify_attendance, payload.code, identity)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse(**booking.to_dict())


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    ledger: BookingLedger = Depends(get_booking_ledger),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(ledger.get_booking, booking_id, identity)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse(**booking.to_dict())


@router.get("/{booking_id}/can-cancel")
async def can_cancel_booking(
    booking_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    ledger: BookingLedger = Depends(get_booking_ledger),
) -> Dict[str, bool]:
    try:
        allowed = await asyncio.to_thread(ledger.can_cancel, booking_id, identity)
    except DomainException as e:
        handle_domain_exception(e)
    return {"can_cancel": allowed}


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
async def confirm_booking(
    booking_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    ledger: BookingLedger = Depends(get_booking_ledger),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(ledger.confirm, booking_id, identity)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse(**booking.to_dict())


@router.post("/{booking_id}/attendance", response_model=BookingResponse)
async def confirm_attendance(
    booking_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    ledger: BookingLedger = Depends(get_booking_ledger),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(ledger.confirm_attendance, booking_id, identity)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse(**booking.to_dict())


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    payload: Optional[BookingCancel] = None,
    identity: Optional[Identity] = Depends(get_identity),
    ledger: BookingLedger = Depends(get_booking_ledger),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            ledger.cancel, booking_id, identity, payload.reason if payload else None
        )
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse(**booking.to_dict())
