# backend/app/models/venue.py
"""
Venue catalog models.

Venues and their sub-venues (courts, pitches, lanes) are owned by the
catalog service; this service only reads them to validate bookings and to
snapshot location data onto booking records.
"""

from datetime import datetime, timezone
from typing import Any, List

from sqlalchemy import Column, DateTime, Float, ForeignKey, String
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import Sport, SubVenueStatus
from ..database import Base
from .types import StringArrayType


class Venue(Base):
    __tablename__ = "venues"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(255), nullable=False)
    address = Column(String(512), nullable=True)
    city = Column(String(128), nullable=True)
    longitude = Column(Float, nullable=True)
    latitude = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    sub_venues = relationship("SubVenue", back_populates="venue", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Venue {self.id}: {self.name}>"

    @property
    def location_label(self) -> str:
        parts = [p for p in (self.name, self.address, self.city) if p]
        return ", ".join(parts)


class SubVenue(Base):
    __tablename__ = "sub_venues"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    venue_id = Column(String(26), ForeignKey("venues.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    sports = Column(StringArrayType, nullable=False, default=list)
    status = Column(String(20), nullable=False, default=SubVenueStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    venue = relationship("Venue", back_populates="sub_venues")

    def __repr__(self) -> str:
        return f"<SubVenue {self.id}: venue={self.venue_id}, name={self.name}>"

    @property
    def offered_sports(self) -> List[Sport]:
        return [Sport(s) for s in (self.sports or [])]

    def offers(self, sport: Any) -> bool:
        """Check whether this sub-venue lists the given sport."""
        try:
            return Sport(sport) in self.offered_sports
        except ValueError:
            return False
