"""
Time slot schemas for the Turfbook platform.

Slot days are generated blocked; venue staff price and open individual
slots through the update request. Start and end times are part of the
update body only so that an attempt to change them can be rejected with
a domain error instead of a generic validation failure.
"""

from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field, field_serializer

from ..core.enums import SlotStatus, Sport
from ._strict_base import ORMResponseModel, StrictModel, StrictRequestModel


class GenerateDayRequest(StrictRequestModel):
    sub_venue_id: str = Field(..., min_length=1, description="Sub-venue to generate slots for")
    date: str = Field(..., description="Calendar date in YYYY-MM-DD (server timezone)")


class SlotUpdateRequest(StrictRequestModel):
    """Partial update of one slot."""

    prices: Optional[Dict[Sport, Decimal]] = Field(
        None, description="Price per sport in major currency units"
    )
    status: Optional[SlotStatus] = Field(None, description="blocked or available")
    start_time: Optional[datetime] = Field(None, description="Immutable; rejected when sent")
    end_time: Optional[datetime] = Field(None, description="Immutable; rejected when sent")


class TimeSlotResponse(ORMResponseModel):
    id: str
    start_time: datetime
    end_time: datetime
    status: str
    prices: Dict[Sport, Decimal] = Field(default_factory=dict)
    booked_for_sport: Optional[str] = None

    @field_serializer("prices")
    def _serialize_prices(self, value: Dict[Sport, Decimal]) -> Dict[str, str]:
        return {sport.value: str(price) for sport, price in value.items()}


class TimeSlotDayResponse(StrictModel):
    id: Optional[str] = Field(None, description="Slot day ID; null when no day was generated")
    sub_venue_id: str
    date: date_type
    slots: List[TimeSlotResponse] = Field(default_factory=list)


class SlotUpdateResponse(StrictModel):
    slot: TimeSlotResponse
    slot_day_id: str


class DeleteDayResponse(StrictModel):
    message: str
    slot_day_id: str
