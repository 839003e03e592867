"""Tests for CheckoutService: direct and game booking initiation."""

from unittest.mock import patch

import pytest

from app.core.config import settings
from app.core.enums import (
    BookingStatus,
    GameBookingStatus,
    GameStatus,
    SlotStatus,
    SubVenueStatus,
    Sport,
)
from app.core.exceptions import (
    ForbiddenException,
    NotFoundException,
    PaymentGatewayException,
    RepositoryException,
    SlotUnavailableException,
    ValidationException,
)
from app.core.ulid_helper import generate_ulid
from app.models.booking import Booking
from app.models.venue import SubVenue
from app.services.checkout_service import CheckoutService, to_subunits
from tests.helpers.factories import add_game, add_slot, reload


@pytest.fixture
def checkout_service(db, gateway):
    return CheckoutService(db, gateway)


def test_to_subunits_rounds_half_up():
    assert to_subunits("1000") == 100000
    assert to_subunits("249.995") == 25000
    assert to_subunits(12.5) == 1250


class TestCreateDirectBooking:
    def test_creates_pending_booking_and_claims_slot(
        self, db, gateway, checkout_service, venue, sub_venue, slot, user_id
    ):
        result = checkout_service.create_direct_booking(
            user_id, sub_venue.id, slot.day_id, slot.id, "Cricket"
        )

        assert result.status == BookingStatus.PENDING.value
        assert result.url.startswith("https://checkout.stripe.test/pay/")

        booking = db.get(Booking, result.booking_id)
        assert booking.status == BookingStatus.PENDING.value
        assert booking.amount == 100000
        assert booking.currency == settings.stripe_currency
        assert booking.stripe_session_id == result.session_id
        assert booking.venue_id == venue.id
        assert booking.sub_venue_id == sub_venue.id
        assert (booking.slot_day_id, booking.slot_id) == (slot.day_id, slot.id)
        assert booking.start_time == slot.start_time
        assert booking.end_time == slot.end_time
        assert booking.latitude == venue.latitude

        stored_slot = reload(db, slot)
        assert stored_slot.status == SlotStatus.BOOKED.value
        assert stored_slot.booked_for_sport == "Cricket"
        assert stored_slot.claimed_by_booking_id == result.booking_id

    def test_gateway_receives_booking_reference(
        self, gateway, checkout_service, sub_venue, slot, user_id
    ):
        result = checkout_service.create_direct_booking(
            user_id, sub_venue.id, slot.day_id, slot.id, Sport.CRICKET
        )

        created = gateway.last_session
        assert created["amount"] == 100000
        assert created["currency"] == "inr"
        assert created["line_item_name"] == "Direct Venue Booking - Cricket"
        assert created["metadata"] == {
            "booking_type": "direct",
            "user_id": user_id,
            "booking_id": result.booking_id,
            "slot_day_id": slot.day_id,
            "slot_id": slot.id,
        }
        assert created["success_url"].endswith("/payment-success?session_id={CHECKOUT_SESSION_ID}")
        assert created["cancel_url"].endswith("/payment-cancel")

    def test_second_booking_for_same_slot_is_rejected(
        self, db, gateway, checkout_service, sub_venue, slot, user_id, other_user_id
    ):
        first = checkout_service.create_direct_booking(
            user_id, sub_venue.id, slot.day_id, slot.id, Sport.CRICKET
        )

        with pytest.raises(SlotUnavailableException):
            checkout_service.create_direct_booking(
                other_user_id, sub_venue.id, slot.day_id, slot.id, Sport.CRICKET
            )

        assert len(gateway.created) == 1
        assert db.query(Booking).count() == 1
        assert reload(db, slot).claimed_by_booking_id == first.booking_id

    def test_sport_not_offered(self, db, checkout_service, sub_venue, slot, user_id):
        with pytest.raises(ValidationException) as exc_info:
            checkout_service.create_direct_booking(
                user_id, sub_venue.id, slot.day_id, slot.id, Sport.TENNIS
            )

        assert exc_info.value.code == "SPORT_NOT_OFFERED"
        assert reload(db, slot).status == SlotStatus.AVAILABLE.value

    def test_unknown_sport(self, checkout_service, sub_venue, slot, user_id):
        with pytest.raises(ValidationException) as exc_info:
            checkout_service.create_direct_booking(
                user_id, sub_venue.id, slot.day_id, slot.id, "Curling"
            )

        assert exc_info.value.code == "INVALID_SPORT"

    def test_offered_but_unpriced_sport(self, db, gateway, checkout_service, sub_venue, slot, user_id):
        with pytest.raises(ValidationException) as exc_info:
            checkout_service.create_direct_booking(
                user_id, sub_venue.id, slot.day_id, slot.id, Sport.FOOTBALL
            )

        assert exc_info.value.code == "SPORT_PRICE_UNAVAILABLE"
        assert gateway.created == []
        assert db.query(Booking).count() == 0

    def test_unknown_sub_venue(self, checkout_service, slot, user_id):
        with pytest.raises(NotFoundException):
            checkout_service.create_direct_booking(
                user_id, generate_ulid(), slot.day_id, slot.id, Sport.CRICKET
            )

    def test_unknown_slot_day(self, checkout_service, sub_venue, slot, user_id):
        with pytest.raises(NotFoundException):
            checkout_service.create_direct_booking(
                user_id, sub_venue.id, generate_ulid(), slot.id, Sport.CRICKET
            )

    def test_slot_day_of_another_sub_venue(self, db, checkout_service, venue, slot, user_id):
        other = SubVenue(
            venue_id=venue.id,
            name="Court B",
            sports=["Cricket"],
            status=SubVenueStatus.ACTIVE.value,
        )
        db.add(other)
        db.commit()

        with pytest.raises(ValidationException) as exc_info:
            checkout_service.create_direct_booking(
                user_id, other.id, slot.day_id, slot.id, Sport.CRICKET
            )

        assert exc_info.value.code == "SLOT_SUB_VENUE_MISMATCH"

    def test_gateway_failure_releases_claim(
        self, db, gateway, checkout_service, sub_venue, slot, user_id
    ):
        gateway.fail_create = True

        with pytest.raises(PaymentGatewayException):
            checkout_service.create_direct_booking(
                user_id, sub_venue.id, slot.day_id, slot.id, Sport.CRICKET
            )

        stored = reload(db, slot)
        assert stored.status == SlotStatus.AVAILABLE.value
        assert stored.booked_for_sport is None
        assert stored.claimed_by_booking_id is None
        assert db.query(Booking).count() == 0

    def test_persist_failure_releases_claim_and_expires_session(
        self, db, gateway, checkout_service, sub_venue, slot, user_id
    ):
        with patch.object(
            checkout_service.booking_repository,
            "create",
            side_effect=RepositoryException("insert failed"),
        ):
            with pytest.raises(RepositoryException):
                checkout_service.create_direct_booking(
                    user_id, sub_venue.id, slot.day_id, slot.id, Sport.CRICKET
                )

        assert gateway.expired == [gateway.last_session["session_id"]]
        assert reload(db, slot).status == SlotStatus.AVAILABLE.value
        assert db.query(Booking).count() == 0

    def test_cleanup_error_still_releases_slot_and_keeps_original_error(
        self, db, gateway, checkout_service, sub_venue, slot, user_id
    ):
        gateway.fail_create = True

        with patch.object(
            checkout_service.booking_repository,
            "get_by_id",
            side_effect=RepositoryException("lookup failed"),
        ):
            with pytest.raises(PaymentGatewayException):
                checkout_service.create_direct_booking(
                    user_id, sub_venue.id, slot.day_id, slot.id, Sport.CRICKET
                )

        stored = reload(db, slot)
        assert stored.status == SlotStatus.AVAILABLE.value
        assert stored.claimed_by_booking_id is None

    def test_slot_is_bookable_again_after_rollback(
        self, db, gateway, checkout_service, sub_venue, slot, user_id
    ):
        gateway.fail_create = True
        with pytest.raises(PaymentGatewayException):
            checkout_service.create_direct_booking(
                user_id, sub_venue.id, slot.day_id, slot.id, Sport.CRICKET
            )

        gateway.fail_create = False
        result = checkout_service.create_direct_booking(
            user_id, sub_venue.id, slot.day_id, slot.id, Sport.CRICKET
        )

        assert reload(db, slot).claimed_by_booking_id == result.booking_id


class TestStartGameBooking:
    def test_host_books_game_slot(self, db, gateway, checkout_service, slot, game, user_id):
        result = checkout_service.start_game_booking(user_id, game.id)

        booking = db.get(Booking, result.booking_id)
        assert booking.game_id == game.id
        assert booking.amount == 100000
        assert booking.status == BookingStatus.PENDING.value

        created = gateway.last_session
        assert created["line_item_name"] == "Game Booking (Cricket)"
        assert created["metadata"]["booking_type"] == "game"
        assert created["metadata"]["game_id"] == game.id

        stored_game = reload(db, game)
        assert stored_game.status == GameStatus.FULL.value
        assert stored_game.booking_status == GameBookingStatus.NOT_BOOKED.value
        assert reload(db, slot).claimed_by_booking_id == result.booking_id

    def test_only_host_can_book(self, checkout_service, game, other_user_id):
        with pytest.raises(ForbiddenException):
            checkout_service.start_game_booking(other_user_id, game.id)

    def test_unknown_game(self, checkout_service, user_id):
        with pytest.raises(NotFoundException) as exc_info:
            checkout_service.start_game_booking(user_id, generate_ulid())

        assert exc_info.value.code == "GAME_NOT_FOUND"

    def test_requires_minimum_approved_players(
        self, db, checkout_service, sub_venue, slot, user_id
    ):
        game = add_game(db, slot, sub_venue, user_id, approved=[user_id], min_players=4)

        with pytest.raises(ValidationException) as exc_info:
            checkout_service.start_game_booking(user_id, game.id)

        assert exc_info.value.code == "NOT_ENOUGH_PLAYERS"
        assert exc_info.value.details == {"approved": 1, "required": 4}
        assert reload(db, slot).status == SlotStatus.AVAILABLE.value

    @pytest.mark.parametrize(
        "status, code",
        [
            (GameStatus.COMPLETED, "GAME_COMPLETED"),
            (GameStatus.CANCELLED, "GAME_CANCELLED"),
        ],
    )
    def test_finished_games_cannot_be_booked(
        self, db, checkout_service, sub_venue, slot, user_id, status, code
    ):
        game = add_game(db, slot, sub_venue, user_id, status=status)

        with pytest.raises(ValidationException) as exc_info:
            checkout_service.start_game_booking(user_id, game.id)

        assert exc_info.value.code == code

    def test_already_booked_game(self, db, checkout_service, game, user_id):
        game.booking_status = GameBookingStatus.BOOKED.value
        db.commit()

        with pytest.raises(ValidationException) as exc_info:
            checkout_service.start_game_booking(user_id, game.id)

        assert exc_info.value.code == "GAME_ALREADY_BOOKED"

    def test_gateway_failure_leaves_game_open(self, db, gateway, checkout_service, slot, game, user_id):
        gateway.fail_create = True

        with pytest.raises(PaymentGatewayException):
            checkout_service.start_game_booking(user_id, game.id)

        assert reload(db, game).status == GameStatus.OPEN.value
        assert reload(db, slot).status == SlotStatus.AVAILABLE.value

    def test_payment_bypass_confirms_without_gateway(
        self, db, gateway, checkout_service, slot, game, user_id, monkeypatch
    ):
        monkeypatch.setattr(settings, "payment_bypass_enabled", True)

        result = checkout_service.start_game_booking(user_id, game.id)

        assert result.status == BookingStatus.PAID.value
        assert result.url.endswith("/payment-success?bypass=true")
        assert gateway.created == []

        booking = db.get(Booking, result.booking_id)
        assert booking.status == BookingStatus.PAID.value
        assert booking.stripe_session_id is None
        assert booking.calendar_link.startswith("https://calendar.google.com/calendar/render?")

        stored_game = reload(db, game)
        assert stored_game.status == GameStatus.FULL.value
        assert stored_game.booking_status == GameBookingStatus.BOOKED.value
        assert reload(db, slot).status == SlotStatus.BOOKED.value


def test_blocked_slot_never_reaches_the_gateway(db, gateway, checkout_service, sub_venue, user_id):
    blocked = add_slot(db, sub_venue, status=SlotStatus.BLOCKED)

    with pytest.raises(SlotUnavailableException):
        checkout_service.create_direct_booking(
            user_id, sub_venue.id, blocked.day_id, blocked.id, Sport.CRICKET
        )

    assert gateway.created == []
