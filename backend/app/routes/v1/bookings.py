# backend/app/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
Business logic is delegated to the checkout, retry, reconciliation and
booking services.

Endpoints:
    POST /direct - Claim a slot and open checkout for a direct booking
    POST /game/{game_id} - Claim the game's slot and open checkout (host only)
    POST /retry-payment - New checkout session for a Failed/Pending booking
    GET /verify-payment - Success-page payment check
    GET /my-bookings - Payer's booking history
    GET /{booking_id}/calendar-link - Calendar link of a paid booking
"""

import asyncio
import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies import (
    get_booking_service,
    get_checkout_service,
    get_current_user_id,
    get_payment_reconciliation_service,
    get_retry_payment_service,
)
from ...core.exceptions import DomainException
from ...schemas.booking import (
    BookingHistoryItem,
    CalendarLinkResponse,
    DirectBookingRequest,
    MyBookingsResponse,
)
from ...schemas.payment_schemas import (
    CheckoutResponse,
    RetryPaymentRequest,
    VerifyPaymentResponse,
)
from ...services.booking_service import BookingService
from ...services.checkout_service import CheckoutResult, CheckoutService
from ...services.payment_reconciliation_service import PaymentReconciliationService
from ...services.retry_payment_service import RetryPaymentService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _checkout_response(result: CheckoutResult) -> CheckoutResponse:
    return CheckoutResponse(booking_id=result.booking_id, url=result.url, status=result.status)


# ============================================================================
# Checkout
# ============================================================================


@router.post("/direct", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def create_direct_booking(
    payload: DirectBookingRequest,
    user_id: str = Depends(get_current_user_id),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResponse:
    """Claim a slot and return the hosted checkout URL."""
    try:
        result = await asyncio.to_thread(
            checkout_service.create_direct_booking,
            user_id,
            payload.sub_venue_id,
            payload.slot_day_id,
            payload.slot_id,
            payload.sport,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return _checkout_response(result)


@router.post("/game/{game_id}", response_model=CheckoutResponse)
async def create_game_booking(
    game_id: str,
    user_id: str = Depends(get_current_user_id),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResponse:
    """Book the venue slot of a hosted game. Only the host may call this."""
    try:
        result = await asyncio.to_thread(checkout_service.start_game_booking, user_id, game_id)
    except DomainException as e:
        handle_domain_exception(e)
    return _checkout_response(result)


@router.post("/retry-payment", response_model=CheckoutResponse)
async def retry_payment(
    payload: RetryPaymentRequest,
    user_id: str = Depends(get_current_user_id),
    retry_service: RetryPaymentService = Depends(get_retry_payment_service),
) -> CheckoutResponse:
    try:
        result = await asyncio.to_thread(retry_service.retry_payment, user_id, payload.booking_id)
    except DomainException as e:
        handle_domain_exception(e)
    return _checkout_response(result)


@router.get("/verify-payment", response_model=VerifyPaymentResponse)
async def verify_payment(
    session_id: str = Query(..., min_length=1),
    user_id: str = Depends(get_current_user_id),
    reconciliation_service: PaymentReconciliationService = Depends(
        get_payment_reconciliation_service
    ),
) -> VerifyPaymentResponse:
    """Read the checkout session back from Stripe and apply the result."""
    try:
        outcome = await asyncio.to_thread(
            reconciliation_service.verify_payment, user_id, session_id
        )
    except DomainException as e:
        handle_domain_exception(e)
    return VerifyPaymentResponse(**outcome)


# ============================================================================
# Booking history
# ============================================================================


@router.get("/my-bookings", response_model=MyBookingsResponse)
async def get_my_bookings(
    user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> MyBookingsResponse:
    try:
        entries = await asyncio.to_thread(booking_service.list_user_bookings, user_id)
    except DomainException as e:
        handle_domain_exception(e)
    bookings = [BookingHistoryItem(**entry) for entry in entries]
    return MyBookingsResponse(bookings=bookings, total=len(bookings))


@router.get("/{booking_id}/calendar-link", response_model=CalendarLinkResponse)
async def get_calendar_link(
    booking_id: str,
    user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> CalendarLinkResponse:
    try:
        link = await asyncio.to_thread(booking_service.get_calendar_link, user_id, booking_id)
    except DomainException as e:
        handle_domain_exception(e)
    return CalendarLinkResponse(booking_id=booking_id, calendar_link=link)
