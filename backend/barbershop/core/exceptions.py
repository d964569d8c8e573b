# backend/barbershop/core/exceptions.py
"""
Domain-specific exceptions for the barbershop booking engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Booking rejections carry a ``reason`` discriminator so callers can
present the matching corrective action (pick another day, pick another
hour, nothing to do).
"""

from typing import Any, ClassVar, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: ClassVar[int] = status.HTTP_500_INTERNAL_SERVER_ERROR

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
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised for malformed input: phone numbers, names, hour labels."""

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


class BackendUnavailableException(ServiceException):
    """
    Raised when the persistence layer cannot be reached or times out.

    Callers must not assume a failed write did not partially apply;
    the right response is a retry affordance.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message or "Booking backend is temporarily unavailable. Please retry.",
            code="BACKEND_UNAVAILABLE",
            details=details or {},
        )

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={"message": self.message, "code": self.code, "details": self.details},
            headers={"Retry-After": "2"},
        )


# Booking rejections


class BookingRejectedException(DomainException):
    """Base for every rejection produced by the conflict checker."""

    reason: ClassVar[str] = "rejected"
    status_code = HTTP_422_UNPROCESSABLE

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        merged = {"reason": self.reason}
        merged.update(details or {})
        super().__init__(message=message, code=self.reason.upper().replace("-", "_"), details=merged)


class PastSlotException(BookingRejectedException):
    """Raised when the requested start is at or before the current time."""

    reason = "past"

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message or "The selected time has already passed", details=details)


class OutsideOperatingHoursException(BookingRejectedException):
    """Raised when an hour of the span falls outside the branch's open window."""

    reason = "outside-hours"

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message or "The requested time falls outside the branch's opening hours",
            details=details,
        )


class SlotTakenException(BookingRejectedException):
    """Raised when the barber already holds a non-cancelled booking in the span."""

    reason = "taken"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message or "This time slot is already booked", details=details)


class InvalidTransitionException(BusinessRuleException):
    """Raised when a status change is not allowed from the booking's current state."""

    def __init__(self, current: str, requested: str, booking_id: Optional[str] = None):
        super().__init__(
            message=f"Cannot change booking status from {current} to {requested}",
            code="INVALID_TRANSITION",
            details={"booking_id": booking_id, "from": current, "to": requested},
        )


class ClientIdentityConflictException(ConflictException):
    """Raised when a phone change collides with another client's phone."""

    def __init__(self, phone: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"A client with phone {phone} already exists",
            code="CLIENT_IDENTITY_CONFLICT",
            details={"phone": phone},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


REJECTIONS_BY_REASON: Dict[str, type[BookingRejectedException]] = {
    PastSlotException.reason: PastSlotException,
    OutsideOperatingHoursException.reason: OutsideOperatingHoursException,
    SlotTakenException.reason: SlotTakenException,
}
