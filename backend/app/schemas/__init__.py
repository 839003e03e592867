# backend/app/schemas/__init__.py
"""
Pydantic schemas for the Turfbook API.

Request models reject unknown fields; response models mirror the
public JSON shapes of the booking, payment and timeslot endpoints.
"""

# Booking schemas
from .booking import (
    BookingHistoryItem,
    BookingSubVenueSummary,
    BookingVenueSummary,
    CalendarLinkResponse,
    DirectBookingRequest,
    MyBookingsResponse,
)

# Health
from .health import HealthCheckResponse

# Payment schemas
from .payment_schemas import (
    CheckoutResponse,
    RetryPaymentRequest,
    VerifyPaymentResponse,
    WebhookResponse,
)

# Timeslot schemas
from .timeslot import (
    DeleteDayResponse,
    GenerateDayRequest,
    SlotUpdateRequest,
    SlotUpdateResponse,
    TimeSlotDayResponse,
    TimeSlotResponse,
)

__all__ = [
    "BookingHistoryItem",
    "BookingSubVenueSummary",
    "BookingVenueSummary",
    "CalendarLinkResponse",
    "CheckoutResponse",
    "DeleteDayResponse",
    "DirectBookingRequest",
    "GenerateDayRequest",
    "HealthCheckResponse",
    "MyBookingsResponse",
    "RetryPaymentRequest",
    "SlotUpdateRequest",
    "SlotUpdateResponse",
    "TimeSlotDayResponse",
    "TimeSlotResponse",
    "VerifyPaymentResponse",
    "WebhookResponse",
]
