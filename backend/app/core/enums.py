# backend/app/core/enums.py
"""
Core enums for the Turfbook platform.

This module contains enumeration types shared by models, schemas and
services so that string values stay consistent across layers.
"""

from enum import Enum


class Sport(str, Enum):
    """Fixed set of sports a sub-venue can offer and a slot can be priced for."""

    CRICKET = "Cricket"
    FOOTBALL = "Football"
    BADMINTON = "Badminton"
    TENNIS = "Tennis"
    TABLE_TENNIS = "Table Tennis"
    BASKETBALL = "Basketball"
    VOLLEYBALL = "Volleyball"
    HOCKEY = "Hockey"
    SWIMMING = "Swimming"


class SlotStatus(str, Enum):
    """Reservation state of a single time slot."""

    BLOCKED = "blocked"
    AVAILABLE = "available"
    BOOKED = "booked"


class BookingStatus(str, Enum):
    """Financial lifecycle of a booking."""

    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"
    REFUNDED = "Refunded"


class GameStatus(str, Enum):
    """Lifecycle of a hosted game."""

    OPEN = "Open"
    FULL = "Full"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class GameBookingStatus(str, Enum):
    """Whether a game's venue slot has been paid for."""

    BOOKED = "Booked"
    NOT_BOOKED = "NotBooked"


class SubVenueStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


# Checkout session states reported by the payment gateway
class CheckoutSessionStatus(str, Enum):
    OPEN = "open"
    COMPLETE = "complete"
    EXPIRED = "expired"
