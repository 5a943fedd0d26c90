# carelink/modules/appointments/slots.py
"""
Daily slot grid and the time-based half of availability.

Everything here is a pure function of configuration and an explicit
reference instant ("now"), so callers decide which clock to use.
Times are naive wall-clock values.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional

from carelink.core.config import settings

SLOT_LENGTH = timedelta(hours=1)


def slot_catalog(
    first_hour: Optional[int] = None,
    last_hour: Optional[int] = None,
) -> List[time]:
    """
    Ordered hourly slots from first_hour to last_hour, both inclusive.
    Defaults come from settings (10:00 .. 17:00).
    """
    first = settings.SLOT_FIRST_HOUR if first_hour is None else first_hour
    last = settings.SLOT_LAST_HOUR if last_hour is None else last_hour
    if not (0 <= first <= 23 and 0 <= last <= 23):
        raise ValueError("slot hours must be between 0 and 23")
    if first > last:
        raise ValueError("first slot hour must not be after last slot hour")
    return [time(hour) for hour in range(first, last + 1)]


def slot_label(slot: time) -> str:
    """Wire value of a slot, e.g. "09:00"."""
    return slot.strftime("%H:%M")


def slot_display(slot: time) -> str:
    """12-hour label, e.g. "3:00 PM"."""
    period = "PM" if slot.hour >= 12 else "AM"
    hour12 = (slot.hour + 11) % 12 + 1
    return f"{hour12}:00 {period}"


def parse_slot(value: str, catalog: Optional[Iterable[time]] = None) -> Optional[time]:
    """
    Catalog slot for a "HH:MM" label, or None if the label is malformed
    or not on the grid.
    """
    try:
        parsed = datetime.strptime(value.strip(), "%H:%M").time()
    except (AttributeError, ValueError):
        return None
    members = slot_catalog() if catalog is None else list(catalog)
    return parsed if parsed in members else None


def slot_end(slot: time) -> time:
    end = (datetime.combine(date.min, slot) + SLOT_LENGTH).time()
    # 23:00 would wrap to midnight
    return end if end > slot else time.max


def available_slots(day: date, now: datetime) -> List[time]:
    """
    Catalog slots still offered on `day` as seen at `now`.

    Other days get the full catalog. On today's date a slot is only offered
    when its hour is strictly after the current hour, so the current hour
    and anything before it drop out.
    """
    catalog = slot_catalog()
    if day != now.date():
        return catalog
    return [slot for slot in catalog if slot.hour > now.hour]


def has_available_slots(day: date, now: datetime) -> bool:
    return len(available_slots(day, now)) > 0


def min_selectable_date(now: datetime) -> date:
    """Today if anything is still bookable today, otherwise tomorrow."""
    today = now.date()
    if has_available_slots(today, now):
        return today
    return today + timedelta(days=1)


def is_slot_expired(day: date, slot: time, now: datetime) -> bool:
    """True when (day, slot) can no longer be booked at `now`."""
    today = now.date()
    if day < today:
        return True
    if day > today:
        return False
    return slot.hour <= now.hour
