"""
Booking schemas for the Turfbook platform.

Direct booking requests plus the payer-facing booking history and
calendar link responses.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_serializer

from ..core.enums import Sport
from ._strict_base import StrictModel, StrictRequestModel


class DirectBookingRequest(StrictRequestModel):
    """Book a single slot of a sub-venue for one sport."""

    sub_venue_id: str = Field(..., min_length=1, description="Sub-venue the slot belongs to")
    slot_day_id: str = Field(..., min_length=1, description="Slot day (time_slot_days.id)")
    slot_id: str = Field(..., min_length=1, description="Slot within that day")
    sport: Sport = Field(..., description="Sport the slot is booked for")


class BookingVenueSummary(StrictModel):
    id: Optional[str] = None
    name: str
    address: str = ""
    city: str = ""


class BookingSubVenueSummary(StrictModel):
    id: Optional[str] = None
    name: str


class BookingHistoryItem(StrictModel):
    """One row of the payer's booking history."""

    id: str
    venue: BookingVenueSummary
    sub_venue: BookingSubVenueSummary
    sport: str
    game_id: Optional[str] = None
    start_time: datetime
    end_time: datetime
    price: Decimal = Field(..., description="Amount paid in major currency units")
    currency: str
    status: str = Field(..., description="confirmed, pending, failed or refunded")
    retryable: bool = Field(..., description="Whether payment can be retried")
    created_at: Optional[datetime] = None

    @field_serializer("price")
    def _serialize_price(self, value: Decimal) -> str:
        return f"{value:.2f}"


class MyBookingsResponse(StrictModel):
    bookings: List[BookingHistoryItem]
    total: int


class CalendarLinkResponse(StrictModel):
    booking_id: str
    calendar_link: Optional[str] = Field(
        None, description="Google Calendar template link; set once the booking is paid"
    )
