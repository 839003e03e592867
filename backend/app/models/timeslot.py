# backend/app/models/timeslot.py
"""
Slot store models.

A ``TimeSlotDay`` is the per-sub-venue, per-calendar-date collection of
bookable slots. Each ``TimeSlot`` carries its own reservation state; the
only writer of ``status`` outside of slot management is the reservation
service, which flips it with a conditional UPDATE.
"""

from datetime import datetime, timezone
from decimal import Decimal
import logging
from typing import Any, Dict, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, validates
import ulid

from ..core.enums import SlotStatus, Sport
from ..core.exceptions import SlotTimingImmutableException
from ..database import Base
from .types import SportPriceMap, UTCDateTime

logger = logging.getLogger(__name__)


class TimeSlotDay(Base):
    __tablename__ = "time_slot_days"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    sub_venue_id = Column(
        String(26), ForeignKey("sub_venues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    slots = relationship(
        "TimeSlot",
        back_populates="day",
        cascade="all, delete-orphan",
        order_by="TimeSlot.start_time",
    )

    __table_args__ = (UniqueConstraint("sub_venue_id", "date", name="uq_time_slot_day"),)

    def __repr__(self) -> str:
        return f"<TimeSlotDay {self.id}: sub_venue={self.sub_venue_id}, date={self.date}>"


class TimeSlot(Base):
    __tablename__ = "time_slots"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    day_id = Column(
        String(26), ForeignKey("time_slot_days.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)
    status = Column(String(20), nullable=False, default=SlotStatus.BLOCKED.value)
    prices = Column(SportPriceMap, nullable=False, default=dict)
    booked_for_sport = Column(String(32), nullable=True)

    # Booking id holding the current claim; written by every successful claim
    claimed_by_booking_id = Column(String(26), nullable=True)
    version = Column(Integer, nullable=False, default=1)

    # ORM writes are conditional on the version they loaded
    __mapper_args__ = {"version_id_col": version}

    day = relationship("TimeSlotDay", back_populates="slots")

    __table_args__ = (
        CheckConstraint(
            "status IN ('blocked', 'available', 'booked')",
            name="ck_time_slots_status",
        ),
        CheckConstraint(
            "status <> 'booked' OR booked_for_sport IS NOT NULL",
            name="ck_time_slots_booked_sport",
        ),
        CheckConstraint("end_time > start_time", name="ck_time_slots_time_order"),
    )

    @validates("start_time", "end_time")
    def _validate_timing(self, key: str, value: datetime) -> datetime:
        current = getattr(self, key)
        if current is not None and current != value:
            raise SlotTimingImmutableException()
        return value

    def __repr__(self) -> str:
        return (
            f"<TimeSlot {self.id}: day={self.day_id}, "
            f"time={self.start_time}-{self.end_time}, status={self.status}>"
        )

    def price_for(self, sport: Any) -> Optional[Decimal]:
        """Return the configured price for a sport, or None when it is not offered."""
        try:
            key = Sport(sport)
        except ValueError:
            return None
        return (self.prices or {}).get(key)

    @property
    def is_available(self) -> bool:
        return self.status == SlotStatus.AVAILABLE.value

    @property
    def is_booked(self) -> bool:
        return self.status == SlotStatus.BOOKED.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "day_id": self.day_id,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "status": self.status,
            "prices": {sport.value: str(price) for sport, price in (self.prices or {}).items()},
            "booked_for_sport": self.booked_for_sport,
        }
