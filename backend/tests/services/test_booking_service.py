"""Tests for BookingService (booking history and calendar links)."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.core.enums import BookingStatus
from app.core.exceptions import ForbiddenException, NotFoundException
from app.core.ulid_helper import generate_ulid
from app.services.booking_service import BookingService, booking_calendar_link, display_status
from tests.helpers.factories import add_booking, add_slot, future_hour


@pytest.fixture
def booking_service(db):
    return BookingService(db)


@pytest.mark.parametrize(
    "status, label",
    [
        (BookingStatus.PAID, "confirmed"),
        (BookingStatus.PENDING, "pending"),
        (BookingStatus.FAILED, "failed"),
        (BookingStatus.REFUNDED, "refunded"),
    ],
)
def test_display_status(status, label):
    assert display_status(status.value) == label


class TestListUserBookings:
    def test_newest_first_with_venue_details(
        self, db, booking_service, venue, sub_venue, slot, user_id
    ):
        now = datetime.now(timezone.utc)
        older = add_booking(
            db, slot, sub_venue, user_id, status=BookingStatus.FAILED, created_at=now - timedelta(hours=2)
        )
        second_slot = add_slot(db, sub_venue, start=future_hour(days=4))
        newer = add_booking(
            db, second_slot, sub_venue, user_id, status=BookingStatus.PAID, amount=150050, created_at=now
        )

        entries = booking_service.list_user_bookings(user_id)

        assert [e["id"] for e in entries] == [newer.id, older.id]
        latest = entries[0]
        assert latest["status"] == "confirmed"
        assert latest["retryable"] is False
        assert latest["price"] == Decimal("1500.50")
        assert latest["venue"] == {
            "id": venue.id,
            "name": "Greenfield Arena",
            "address": "12 Park Road",
            "city": "Bengaluru",
        }
        assert latest["sub_venue"] == {"id": sub_venue.id, "name": "Court A"}
        assert entries[1]["status"] == "failed"
        assert entries[1]["retryable"] is True

    def test_only_own_bookings(self, db, booking_service, sub_venue, slot, user_id, other_user_id):
        add_booking(db, slot, sub_venue, other_user_id)

        assert booking_service.list_user_bookings(user_id) == []


class TestCalendarLink:
    def test_returns_stored_link(self, db, booking_service, sub_venue, slot, user_id):
        booking = add_booking(db, slot, sub_venue, user_id, status=BookingStatus.PAID)
        booking.calendar_link = booking_calendar_link(booking)
        db.commit()

        link = booking_service.get_calendar_link(user_id, booking.id)

        assert link.startswith("https://calendar.google.com/calendar/render?action=TEMPLATE")
        assert "Cricket+at+Greenfield+Arena" in link

    def test_unpaid_booking_has_no_link(self, db, booking_service, sub_venue, slot, user_id):
        booking = add_booking(db, slot, sub_venue, user_id)

        assert booking_service.get_calendar_link(user_id, booking.id) is None

    def test_other_users_booking(self, db, booking_service, sub_venue, slot, user_id, other_user_id):
        booking = add_booking(db, slot, sub_venue, user_id)

        with pytest.raises(ForbiddenException):
            booking_service.get_calendar_link(other_user_id, booking.id)

    def test_unknown_booking(self, booking_service, user_id):
        with pytest.raises(NotFoundException):
            booking_service.get_calendar_link(user_id, generate_ulid())
