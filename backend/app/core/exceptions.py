# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the Massava platform.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
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


class HealthConsentRequiredException(ValidationException):
    """Raised when a booking message may carry health data but no Art. 9 consent was given."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(
            message=message
            or "Explicit consent to the processing of health data (Art. 9 GDPR) is required when a message is provided",
            code="HEALTH_CONSENT_REQUIRED",
            details={"field": "explicitHealthConsent"},
        )


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BookingAlreadyProcessedException(ConflictException):
    """Raised when a booking has already left the state an action requires."""

    def __init__(self, booking_id: str, current_status: str) -> None:
        super().__init__(
            message="Booking has already been processed",
            code="BOOKING_ALREADY_PROCESSED",
            details={"booking_id": booking_id, "status": current_status},
        )


class CapacityExceededException(ConflictException):
    """Raised when a slot already holds as many confirmed bookings as the studio allows."""

    def __init__(self, current: int, maximum: int) -> None:
        super().__init__(
            message="This time slot is fully booked",
            code="CAPACITY_EXCEEDED",
            details={"current": current, "max": maximum},
        )


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class RateLimitExceededException(DomainException):
    """Raised when a client exhausted its request budget for the current window."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, retry_after: int, policy: str, headers: Optional[Dict[str, str]] = None) -> None:
        super().__init__(
            message="Too many requests. Please try again later.",
            code="RATE_LIMITED",
            details={"retry_after_seconds": retry_after, "policy": policy},
        )
        self.retry_after = retry_after
        self.headers = dict(headers or {})
        self.headers.setdefault("Retry-After", str(retry_after))

    def to_http_exception(self) -> HTTPException:
        exc = super().to_http_exception()
        exc.headers = dict(self.headers)
        return exc


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": "An error occurred processing your request",
                "code": self.code,
                "details": {},
            },
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
