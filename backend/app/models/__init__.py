"""
Database models for the Turfbook platform.

The models are organized by functionality:
- Venue catalog (read-only for the booking core)
- Slot store (per sub-venue, per date)
- Booking ledger
- Hosted games
"""

from .booking import Booking
from .game import Game
from .timeslot import TimeSlot, TimeSlotDay
from .venue import SubVenue, Venue

__all__ = [
    "Booking",
    "Game",
    "SubVenue",
    "TimeSlot",
    "TimeSlotDay",
    "Venue",
]
