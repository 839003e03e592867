# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the Turfbook platform.

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


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


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


# Specific business exceptions


class SlotUnavailableException(ConflictException):
    """Raised when the conditional claim on a slot loses (already booked or blocked)."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "Slot is no longer available",
            code="SLOT_UNAVAILABLE",
            details=details or {},
        )


class PaymentGatewayException(DomainException):
    """Raised when the payment gateway rejects or fails a call. Safe to retry."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "Payment provider is unavailable, please try again",
            code="PAYMENT_GATEWAY_ERROR",
            details={"retryable": True, **(details or {})},
        )


class WebhookSignatureException(ValidationException):
    """Raised when a gateway notification is unsigned or its signature does not verify."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message=message, code="INVALID_WEBHOOK_SIGNATURE")


class SlotTimingImmutableException(ValidationException):
    """Raised when anything tries to move a slot's start or end time."""

    def __init__(self, message: str = "Slot start and end times cannot be changed"):
        super().__init__(message=message, code="SLOT_TIMING_IMMUTABLE")


class BookingImmutableFieldException(ValidationException):
    """Raised when a booking's financial snapshot is reassigned after creation."""

    def __init__(self, field_name: str):
        super().__init__(
            message=f"Booking field '{field_name}' cannot be changed after creation",
            code="BOOKING_FIELD_IMMUTABLE",
            details={"field": field_name},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
