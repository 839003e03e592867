# backend/app/models/game.py
"""
Hosted game model.

Games are created and managed by the games service. The booking core reads
the host, player roster and slot snapshot, and writes only ``status`` and
``booking_status``.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, Numeric, String, Text
import ulid

from ..core.enums import GameBookingStatus, GameStatus
from ..database import Base
from .types import StringArrayType, UTCDateTime

TERMINAL_GAME_STATUSES = frozenset({GameStatus.COMPLETED.value, GameStatus.CANCELLED.value})


class Game(Base):
    __tablename__ = "games"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    host_id = Column(String(26), nullable=False, index=True)
    sport = Column(String(32), nullable=False)
    description = Column(Text, nullable=True)
    min_players = Column(Integer, nullable=False, default=2)
    max_players = Column(Integer, nullable=False, default=10)
    approved_player_ids = Column(StringArrayType, nullable=False, default=list)

    status = Column(String(20), nullable=False, default=GameStatus.OPEN.value)
    booking_status = Column(String(20), nullable=False, default=GameBookingStatus.NOT_BOOKED.value)

    # Slot snapshot chosen by the host
    venue_id = Column(String(26), nullable=False)
    sub_venue_id = Column(String(26), nullable=False)
    slot_day_id = Column(String(26), nullable=False)
    slot_id = Column(String(26), nullable=False)
    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    longitude = Column(Float, nullable=True)
    latitude = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return (
            f"<Game {self.id}: host={self.host_id}, sport={self.sport}, "
            f"status={self.status}, booking_status={self.booking_status}>"
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_GAME_STATUSES

    @property
    def approved_count(self) -> int:
        return len(self.approved_player_ids or [])

    @property
    def is_booked(self) -> bool:
        return self.booking_status == GameBookingStatus.BOOKED.value
