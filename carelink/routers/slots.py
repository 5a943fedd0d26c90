# carelink/routers/slots.py
from __future__ import annotations

from datetime import date, datetime

from fastapi import APIRouter, Depends, Query

from carelink.dependencies import get_reference_instant
from carelink.modules.appointments.schemas import DaySlots
from carelink.modules.appointments.service import get_day_slots

router = APIRouter(tags=["slots"])


@router.get(
    "/slots",
    response_model=DaySlots,
    summary="Bookable hours for a day, before any doctor's bookings are applied",
)
async def slots_for_day(
    day: date = Query(..., alias="date"),
    now: datetime = Depends(get_reference_instant),
):
    return get_day_slots(day, now)
