# backend/app/models/booking.py
"""
Booking model for the Turfbook platform.

A booking is the financial record of one paid (or attempted) reservation
of a single venue slot. It snapshots everything needed to reconcile and
display the booking, so it stays meaningful even if the slot day is later
regenerated.

Architecture: the booking id is generated before the checkout session is
opened so it can travel in gateway metadata and double as the claim-owner
token on the slot.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship, validates
import ulid

from ..core.enums import BookingStatus
from ..core.exceptions import BookingImmutableFieldException
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)

IMMUTABLE_BOOKING_FIELDS = ("amount", "currency", "start_time", "end_time")
RETRYABLE_STATUSES = frozenset({BookingStatus.PENDING.value, BookingStatus.FAILED.value})


class Booking(Base):
    """
    Booking record for one venue slot.

    Amount and currency are stored in gateway subunits (e.g. paise) and,
    together with the slot timing, can never be reassigned after creation.
    """

    __tablename__ = "bookings"

    # Primary key
    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    # Payer and optional hosted game
    user_id = Column(String(26), nullable=False, index=True)
    game_id = Column(String(26), ForeignKey("games.id", ondelete="SET NULL"), nullable=True)

    # Venue snapshot
    venue_id = Column(String(26), ForeignKey("venues.id"), nullable=False)
    sub_venue_id = Column(String(26), ForeignKey("sub_venues.id"), nullable=True)
    sport = Column(String(32), nullable=False)
    longitude = Column(Float, nullable=True)
    latitude = Column(Float, nullable=True)
    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)
    amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False)

    # Slot reference (recovery context for reconciliation)
    slot_day_id = Column(String(26), nullable=True)
    slot_id = Column(String(26), nullable=True)

    # Gateway references
    stripe_session_id = Column(String(255), nullable=True, unique=True, index=True)
    stripe_payment_intent_id = Column(String(255), nullable=True)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    calendar_link = Column(Text, nullable=True)

    created_at = Column(
        UTCDateTime, nullable=False, default=lambda: datetime.now(timezone.utc), index=True
    )
    # When the current gateway session was opened; reset on every retry
    session_created_at = Column(
        UTCDateTime, nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    venue = relationship("Venue")
    sub_venue = relationship("SubVenue")
    game = relationship("Game")

    __table_args__ = (
        CheckConstraint(
            "status IN ('Pending', 'Paid', 'Failed', 'Refunded')",
            name="ck_bookings_status",
        ),
        CheckConstraint("amount > 0", name="check_amount_positive"),
    )

    @validates(*IMMUTABLE_BOOKING_FIELDS)
    def _validate_immutable(self, key: str, value: Any) -> Any:
        current = getattr(self, key)
        if current is not None and current != value:
            raise BookingImmutableFieldException(key)
        return value

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Booking {self.id}: user={self.user_id}, slot={self.slot_day_id}/{self.slot_id}, "
            f"amount={self.amount} {self.currency}, status={self.status}>"
        )

    @property
    def is_paid(self) -> bool:
        return self.status == BookingStatus.PAID.value

    @property
    def is_retryable(self) -> bool:
        return self.status in RETRYABLE_STATUSES

    def mark_paid(self, payment_intent_id: Optional[str]) -> None:
        self.status = BookingStatus.PAID.value
        if payment_intent_id:
            self.stripe_payment_intent_id = payment_intent_id
        logger.info(f"Booking {self.id} marked as paid")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "game_id": self.game_id,
            "venue_id": self.venue_id,
            "sub_venue_id": self.sub_venue_id,
            "sport": self.sport,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "amount": self.amount,
            "currency": self.currency,
            "slot_day_id": self.slot_day_id,
            "slot_id": self.slot_id,
            "status": self.status,
            "calendar_link": self.calendar_link,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


Index(
    "ix_booking_pending_session_created",
    Booking.status,
    Booking.session_created_at,
    postgresql_where=(Booking.status == BookingStatus.PENDING.value),
)
