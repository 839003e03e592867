# backend/app/services/checkout_service.py
"""
Checkout initiation for direct and game bookings.

Protocol for both variants:

1. Validate the request against the catalog / game.
2. Generate the booking id (it is also the slot's claim token).
3. Claim the slot (committed on its own).
4. Open a checkout session at the gateway with the booking id and slot
   reference in its metadata.
5. Persist the Pending booking with the session id.

Any failure after step 3 releases exactly the slot that was claimed,
removes the booking row if one was written, and expires a session that
was already opened. A claim failure aborts before anything else happens.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import (
    BOOKING_TYPE_DIRECT,
    BOOKING_TYPE_GAME,
    DIRECT_BOOKING_LINE_ITEM,
    GAME_BOOKING_LINE_ITEM,
)
from ..core.enums import BookingStatus, GameStatus, Sport
from ..core.exceptions import (
    ForbiddenException,
    NotFoundException,
    PaymentGatewayException,
    ValidationException,
)
from ..core.ulid_helper import generate_ulid
from ..models.game import Game
from ..models.timeslot import TimeSlot
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .booking_service import booking_calendar_link
from .game_sync_service import GameSyncService
from .payment_gateway import CheckoutSession, PaymentGateway
from .slot_reservation_service import SlotReservationService


@dataclass(frozen=True)
class CheckoutResult:
    booking_id: str
    url: Optional[str]
    status: str
    session_id: Optional[str] = None


def to_subunits(price: Any) -> int:
    """Convert a major-unit price into the gateway's integer subunits."""
    amount = Decimal(str(price)) * Decimal(settings.currency_subunit_factor)
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class CheckoutService(BaseService):
    def __init__(
        self,
        db: Session,
        gateway: PaymentGateway,
        reservation_service: Optional[SlotReservationService] = None,
        game_sync_service: Optional[GameSyncService] = None,
    ):
        super().__init__(db)
        self.gateway = gateway
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.game_repository = RepositoryFactory.create_game_repository(db)
        self.venue_repository = RepositoryFactory.create_venue_repository(db)
        self.slot_repository = RepositoryFactory.create_timeslot_repository(db)
        self.reservation_service = reservation_service or SlotReservationService(db)
        self.game_sync_service = game_sync_service or GameSyncService(db)

    @BaseService.measure_operation("create_direct_booking")
    def create_direct_booking(
        self,
        user_id: str,
        sub_venue_id: str,
        slot_day_id: str,
        slot_id: str,
        sport: Any,
    ) -> CheckoutResult:
        try:
            sport = Sport(sport)
        except ValueError:
            raise ValidationException(f"Invalid sport: {sport}", code="INVALID_SPORT")

        sub_venue = self.venue_repository.get_sub_venue(sub_venue_id)
        if sub_venue is None:
            raise NotFoundException("Sub-venue not found", code="SUB_VENUE_NOT_FOUND")
        venue = sub_venue.venue
        if venue is None:
            raise NotFoundException("Venue not found", code="VENUE_NOT_FOUND")
        if not sub_venue.offers(sport):
            raise ValidationException(
                f"{sport.value} is not offered at this sub-venue", code="SPORT_NOT_OFFERED"
            )

        slot_day = self.slot_repository.get_day(slot_day_id)
        if slot_day is None:
            raise NotFoundException("TimeSlot not found", code="SLOT_NOT_FOUND")
        if slot_day.sub_venue_id != sub_venue_id:
            raise ValidationException(
                "Slot does not belong to this sub-venue", code="SLOT_SUB_VENUE_MISMATCH"
            )

        booking_id = generate_ulid()
        slot = self.reservation_service.claim_slot(slot_day_id, slot_id, sport, booking_id)
        amount = to_subunits(slot.price_for(sport))

        metadata = {
            "booking_type": BOOKING_TYPE_DIRECT,
            "user_id": user_id,
            "booking_id": booking_id,
            "slot_day_id": slot_day_id,
            "slot_id": slot_id,
        }
        booking_fields: Dict[str, Any] = {
            "user_id": user_id,
            "venue_id": venue.id,
            "sub_venue_id": sub_venue_id,
            "sport": sport.value,
            "longitude": venue.longitude,
            "latitude": venue.latitude,
        }
        return self._open_checkout(
            booking_id=booking_id,
            slot=slot,
            amount=amount,
            line_item_name=DIRECT_BOOKING_LINE_ITEM.format(sport=sport.value),
            metadata=metadata,
            booking_fields=booking_fields,
        )

    @BaseService.measure_operation("start_game_booking")
    def start_game_booking(self, user_id: str, game_id: str) -> CheckoutResult:
        game = self.game_repository.get_by_id(game_id)
        if game is None:
            raise NotFoundException("Game not found", code="GAME_NOT_FOUND")
        self._validate_game_for_booking(game, user_id)

        booking_id = generate_ulid()
        slot = self.reservation_service.claim_slot(
            game.slot_day_id, game.slot_id, game.sport, booking_id
        )
        amount = to_subunits(game.price)

        booking_fields: Dict[str, Any] = {
            "user_id": user_id,
            "game_id": game.id,
            "venue_id": game.venue_id,
            "sub_venue_id": game.sub_venue_id,
            "sport": Sport(game.sport).value,
            "longitude": game.longitude,
            "latitude": game.latitude,
        }

        if settings.payment_bypass_enabled:
            return self._complete_without_payment(booking_id, slot, amount, booking_fields)

        metadata = {
            "booking_type": BOOKING_TYPE_GAME,
            "user_id": user_id,
            "booking_id": booking_id,
            "game_id": game.id,
            "slot_day_id": game.slot_day_id,
            "slot_id": game.slot_id,
        }
        return self._open_checkout(
            booking_id=booking_id,
            slot=slot,
            amount=amount,
            line_item_name=GAME_BOOKING_LINE_ITEM.format(sport=game.sport),
            metadata=metadata,
            booking_fields=booking_fields,
        )

    def _validate_game_for_booking(self, game: Game, user_id: str) -> None:
        if game.host_id != user_id:
            raise ForbiddenException("Only the host can book this game")
        if game.status == GameStatus.COMPLETED.value:
            raise ValidationException("Cannot book a completed game", code="GAME_COMPLETED")
        if game.status == GameStatus.CANCELLED.value:
            raise ValidationException("Cannot book a cancelled game", code="GAME_CANCELLED")
        if game.is_booked:
            raise ValidationException("Game is already booked", code="GAME_ALREADY_BOOKED")
        if game.approved_count < game.min_players:
            raise ValidationException(
                f"At least {game.min_players} approved players are required to book",
                code="NOT_ENOUGH_PLAYERS",
                details={"approved": game.approved_count, "required": game.min_players},
            )

    def _open_checkout(
        self,
        *,
        booking_id: str,
        slot: TimeSlot,
        amount: int,
        line_item_name: str,
        metadata: Dict[str, str],
        booking_fields: Dict[str, Any],
    ) -> CheckoutResult:
        session: Optional[CheckoutSession] = None
        try:
            session = self.gateway.create_checkout_session(
                amount=amount,
                currency=settings.stripe_currency,
                line_item_name=line_item_name,
                metadata=metadata,
                success_url=settings.checkout_success_url(),
                cancel_url=settings.checkout_cancel_url(),
            )
            with self.transaction():
                self.booking_repository.create(
                    id=booking_id,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    amount=amount,
                    currency=settings.stripe_currency,
                    slot_day_id=slot.day_id,
                    slot_id=slot.id,
                    stripe_session_id=session.session_id,
                    status=BookingStatus.PENDING.value,
                    **booking_fields,
                )
                self.game_sync_service.mark_full(booking_fields.get("game_id"))
        except Exception:
            self.logger.error(
                f"Checkout failed after claiming slot {slot.day_id}/{slot.id}; rolling back",
                exc_info=True,
                extra={"booking_id": booking_id},
            )
            self._rollback_checkout(booking_id, slot.day_id, slot.id, session)
            raise

        self.log_operation(
            "checkout_started",
            booking_id=booking_id,
            session_id=session.session_id,
            amount=amount,
        )
        return CheckoutResult(
            booking_id=booking_id,
            url=session.url,
            status=BookingStatus.PENDING.value,
            session_id=session.session_id,
        )

    def _complete_without_payment(
        self,
        booking_id: str,
        slot: TimeSlot,
        amount: int,
        booking_fields: Dict[str, Any],
    ) -> CheckoutResult:
        """Payment bypass for game bookings: the claim still goes through the coordinator."""
        self.logger.warning(f"Payment bypass enabled; booking {booking_id} marked paid")
        try:
            with self.transaction():
                booking = self.booking_repository.create(
                    id=booking_id,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    amount=amount,
                    currency=settings.stripe_currency,
                    slot_day_id=slot.day_id,
                    slot_id=slot.id,
                    status=BookingStatus.PAID.value,
                    **booking_fields,
                )
                booking.calendar_link = booking_calendar_link(booking)
                self.game_sync_service.mark_booked(booking_fields.get("game_id"))
        except Exception:
            self._rollback_checkout(booking_id, slot.day_id, slot.id, None)
            raise

        return CheckoutResult(
            booking_id=booking_id,
            url=settings.checkout_success_url(bypass=True),
            status=BookingStatus.PAID.value,
        )

    def _rollback_checkout(
        self,
        booking_id: str,
        slot_day_id: str,
        slot_id: str,
        session: Optional[CheckoutSession],
    ) -> None:
        """Undo a partially completed checkout. The original error is re-raised by the caller."""
        self.db.rollback()

        try:
            existing = self.booking_repository.get_by_id(booking_id)
            if existing is not None:
                with self.transaction():
                    self.db.delete(existing)
        except Exception:
            # The caller re-raises the original error; this one is only logged
            self.logger.error(
                f"Could not remove booking {booking_id} during rollback",
                exc_info=True,
                extra={"booking_id": booking_id},
            )
            self.db.rollback()

        self.reservation_service.release_slot(slot_day_id, slot_id)

        if session is not None:
            try:
                self.gateway.expire_session(session.session_id)
            except PaymentGatewayException:
                self.logger.warning(
                    f"Could not expire session {session.session_id} during rollback",
                    extra={"booking_id": booking_id},
                )
