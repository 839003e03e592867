"""
Payment-related Pydantic schemas for the Turfbook platform.

Request and response bodies for checkout initiation, payment retry,
success-page verification and Stripe webhook processing.
"""

from typing import Optional

from pydantic import Field

from ._strict_base import StrictModel, StrictRequestModel

# ========== Request Models ==========


class RetryPaymentRequest(StrictRequestModel):
    """Request to open a new checkout session for an unpaid booking."""

    booking_id: Optional[str] = Field(None, description="Booking to retry payment for")


# ========== Response Models ==========


class CheckoutResponse(StrictModel):
    """Hosted checkout page for a freshly created or retried booking."""

    booking_id: str = Field(..., description="Booking ID (also the slot claim token)")
    url: Optional[str] = Field(None, description="Stripe Checkout URL to redirect the payer to")
    status: str = Field(..., description="Booking status after checkout initiation")


class VerifyPaymentResponse(StrictModel):
    """Result of the success-page payment check."""

    success: bool = Field(..., description="Whether the payment has been confirmed")
    message: str = Field(..., description="Human readable outcome")
    booking_id: str = Field(..., description="Booking the session belongs to")
    status: str = Field(..., description="Booking status after verification")


class WebhookResponse(StrictModel):
    """Response for webhook processing."""

    status: str = Field(..., description="Processing status (success, ignored, error)")
    event_type: str = Field(..., description="Stripe event type")
    message: Optional[str] = Field(None, description="Additional information")
