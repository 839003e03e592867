# backend/app/services/booking_service.py
"""
Read-side booking operations for the payer: booking history and the
calendar link of a paid booking.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import BookingStatus
from ..core.exceptions import ForbiddenException, NotFoundException
from ..models.booking import Booking
from ..repositories.factory import RepositoryFactory
from ..utils.calendar_links import build_google_calendar_link
from .base import BaseService

UNKNOWN_VENUE_NAME = "Unknown Venue"
DIRECT_BOOKING_LABEL = "Direct Booking"


def display_status(status: str) -> str:
    """Map ledger status to the label the booking history shows."""
    if status == BookingStatus.PAID.value:
        return "confirmed"
    if status == BookingStatus.PENDING.value:
        return "pending"
    return status.lower()


def booking_calendar_link(booking: Booking) -> str:
    venue = booking.venue
    venue_name = venue.name if venue is not None else UNKNOWN_VENUE_NAME
    location = venue.location_label if venue is not None else ""
    return build_google_calendar_link(
        title=f"{booking.sport} at {venue_name}",
        start=booking.start_time,
        end=booking.end_time,
        location=location,
    )


class BookingService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    @BaseService.measure_operation("list_user_bookings")
    def list_user_bookings(self, user_id: str) -> List[Dict[str, Any]]:
        """Payer's bookings, newest first, shaped for the booking history view."""
        bookings = self.booking_repository.list_for_user(user_id)
        self.logger.debug(f"Found {len(bookings)} bookings for user {user_id}")
        return [self._history_entry(booking) for booking in bookings]

    @BaseService.measure_operation("get_calendar_link")
    def get_calendar_link(self, user_id: str, booking_id: str) -> Optional[str]:
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        if booking.user_id != user_id:
            raise ForbiddenException("Not authorized to view this calendar link")
        return booking.calendar_link

    def _history_entry(self, booking: Booking) -> Dict[str, Any]:
        venue = booking.venue
        sub_venue = booking.sub_venue
        return {
            "id": booking.id,
            "venue": {
                "id": venue.id if venue is not None else None,
                "name": venue.name if venue is not None else UNKNOWN_VENUE_NAME,
                "address": (venue.address or "") if venue is not None else "",
                "city": (venue.city or "") if venue is not None else "",
            },
            "sub_venue": {
                "id": sub_venue.id if sub_venue is not None else None,
                "name": sub_venue.name if sub_venue is not None else DIRECT_BOOKING_LABEL,
            },
            "sport": booking.sport,
            "game_id": booking.game_id,
            "start_time": booking.start_time,
            "end_time": booking.end_time,
            "price": Decimal(booking.amount) / Decimal(settings.currency_subunit_factor),
            "currency": booking.currency,
            "status": display_status(booking.status),
            "retryable": booking.is_retryable,
            "created_at": booking.created_at,
        }
