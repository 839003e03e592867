# backend/app/routes/v1/timeslots.py
"""
Time slot management routes - API v1

Endpoints:
    POST /generate - Generate one day of blocked hourly slots
    GET /sub-venues/{sub_venue_id}?date= - Slots of a sub-venue for a date
    DELETE /sub-venues/{sub_venue_id}?date= - Delete a day without bookings
    PATCH /slots/{slot_id} - Price, open or block a slot
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies import get_current_user_id, get_timeslot_service
from ...core.exceptions import DomainException
from ...models.timeslot import TimeSlotDay
from ...schemas.timeslot import (
    DeleteDayResponse,
    GenerateDayRequest,
    SlotUpdateRequest,
    SlotUpdateResponse,
    TimeSlotDayResponse,
    TimeSlotResponse,
)
from ...services.timeslot_service import TimeSlotService, parse_slot_date

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["timeslots-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _day_response(slot_day: TimeSlotDay) -> TimeSlotDayResponse:
    return TimeSlotDayResponse(
        id=slot_day.id,
        sub_venue_id=slot_day.sub_venue_id,
        date=slot_day.date,
        slots=[TimeSlotResponse.model_validate(slot) for slot in slot_day.slots],
    )


@router.post("/generate", response_model=TimeSlotDayResponse, status_code=status.HTTP_201_CREATED)
async def generate_slot_day(
    payload: GenerateDayRequest,
    _: str = Depends(get_current_user_id),
    timeslot_service: TimeSlotService = Depends(get_timeslot_service),
) -> TimeSlotDayResponse:
    try:
        slot_day = await asyncio.to_thread(
            timeslot_service.generate_day, payload.sub_venue_id, payload.date
        )
    except DomainException as e:
        handle_domain_exception(e)
    return _day_response(slot_day)


@router.get("/sub-venues/{sub_venue_id}", response_model=TimeSlotDayResponse)
async def get_slot_day(
    sub_venue_id: str,
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    _: str = Depends(get_current_user_id),
    timeslot_service: TimeSlotService = Depends(get_timeslot_service),
) -> TimeSlotDayResponse:
    """Slots for a sub-venue and date; an empty list when none were generated."""
    try:
        slot_day = await asyncio.to_thread(timeslot_service.get_day, sub_venue_id, date)
        if slot_day is None:
            return TimeSlotDayResponse(
                id=None, sub_venue_id=sub_venue_id, date=parse_slot_date(date), slots=[]
            )
    except DomainException as e:
        handle_domain_exception(e)
    return _day_response(slot_day)


@router.delete("/sub-venues/{sub_venue_id}", response_model=DeleteDayResponse)
async def delete_slot_day(
    sub_venue_id: str,
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    _: str = Depends(get_current_user_id),
    timeslot_service: TimeSlotService = Depends(get_timeslot_service),
) -> DeleteDayResponse:
    try:
        slot_day_id = await asyncio.to_thread(timeslot_service.delete_day, sub_venue_id, date)
    except DomainException as e:
        handle_domain_exception(e)
    return DeleteDayResponse(message="Timeslots deleted successfully", slot_day_id=slot_day_id)


@router.patch("/slots/{slot_id}", response_model=SlotUpdateResponse)
async def update_slot(
    slot_id: str,
    payload: SlotUpdateRequest,
    _: str = Depends(get_current_user_id),
    timeslot_service: TimeSlotService = Depends(get_timeslot_service),
) -> SlotUpdateResponse:
    try:
        slot = await asyncio.to_thread(timeslot_service.update_slot, slot_id, payload)
    except DomainException as e:
        handle_domain_exception(e)
    return SlotUpdateResponse(slot=TimeSlotResponse.model_validate(slot), slot_day_id=slot.day_id)
