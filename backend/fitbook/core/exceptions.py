# backend/fitbook/core/exceptions.py
"""
Domain-specific exceptions for the fitbook booking engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the orchestrator
boundary or converted to HTTP errors at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException using the subclass status code."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Booking engine taxonomy


class AuthorizationError(ForbiddenException):
    """Raised when the acting identity is missing or has the wrong role."""

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        *,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code or "AUTHORIZATION_ERROR", details=details)


class NotFoundError(NotFoundException):
    """Raised when a referenced class, booking or user does not exist."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        message = f"{resource} not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            details={"resource": resource, "id": resource_id},
        )


class CapacityExceededError(ConflictException):
    """Raised when a class has no seats left on the requested date."""

    def __init__(self, class_id: str, session_date: Any, capacity: int):
        super().__init__(
            message="This class is full on that date",
            code="CAPACITY_EXCEEDED",
            details={
                "class_id": class_id,
                "date": str(session_date),
                "capacity": capacity,
            },
        )


class DuplicateBookingError(ConflictException):
    """Raised when the student already holds a booking for the same session."""

    def __init__(self, class_id: str, session_date: Any, student_id: str):
        super().__init__(
            message="You have already booked this session",
            code="DUPLICATE_BOOKING",
            details={
                "class_id": class_id,
                "date": str(session_date),
                "student_id": student_id,
            },
        )


class InvalidTransitionError(BusinessRuleException):
    """Raised when a booking status change is not allowed from its current state."""

    def __init__(self, booking_id: str, current_status: str, target_status: str):
        super().__init__(
            message=f"Booking cannot move from {current_status} to {target_status}",
            code="INVALID_TRANSITION",
            details={
                "booking_id": booking_id,
                "current_status": current_status,
                "target_status": target_status,
            },
        )


class VerificationAlreadyIssuedError(ConflictException):
    """Raised when a verification code is requested twice for one booking."""

    def __init__(self, booking_id: str):
        super().__init__(
            message="A verification code has already been issued for this booking",
            code="VERIFICATION_ALREADY_ISSUED",
            details={"booking_id": booking_id},
        )


class ClassHasActiveBookingsError(ConflictException):
    """Raised when a trainer archives a class that still has open bookings."""

    def __init__(self, class_id: str, active_bookings: int):
        super().__init__(
            message="This class still has upcoming bookings and cannot be removed",
            code="CLASS_HAS_ACTIVE_BOOKINGS",
            details={"class_id": class_id, "active_bookings": active_bookings},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


class RepositoryConflictError(RepositoryException):
    """Raised when a write is rejected by a unique or check constraint."""
