from datetime import date, datetime, time, timedelta

import pytest

from carelink.modules.appointments.slots import (
    available_slots,
    has_available_slots,
    is_slot_expired,
    min_selectable_date,
    parse_slot,
    slot_catalog,
    slot_display,
    slot_end,
    slot_label,
)

DEFAULT_CATALOG = [time(h) for h in range(10, 18)]


def test_default_catalog_is_ten_to_five_inclusive() -> None:
    assert slot_catalog() == DEFAULT_CATALOG
    assert [slot_label(s) for s in slot_catalog()][0] == "10:00"
    assert [slot_label(s) for s in slot_catalog()][-1] == "17:00"


@pytest.mark.parametrize(("first", "last"), [(0, 0), (0, 23), (9, 17), (10, 17), (12, 13), (22, 23)])
def test_catalog_is_contiguous_and_increasing(first: int, last: int) -> None:
    catalog = slot_catalog(first, last)

    assert len(catalog) == last - first + 1
    assert catalog[0] == time(first)
    assert all(b.hour - a.hour == 1 for a, b in zip(catalog, catalog[1:]))


@pytest.mark.parametrize(("first", "last"), [(18, 10), (-1, 5), (5, 24)])
def test_catalog_rejects_bad_bounds(first: int, last: int) -> None:
    with pytest.raises(ValueError):
        slot_catalog(first, last)


def test_future_day_gets_full_catalog() -> None:
    now = datetime(2024, 5, 1, 16, 59)

    for offset in (1, 2, 30):
        assert available_slots(now.date() + timedelta(days=offset), now) == DEFAULT_CATALOG


def test_today_only_offers_hours_after_current_hour() -> None:
    now = datetime(2024, 5, 1, 14, 30)

    assert available_slots(now.date(), now) == [time(15), time(16), time(17)]


def test_today_on_the_hour_excludes_current_hour() -> None:
    now = datetime(2024, 5, 1, 10, 0)

    assert time(10) not in available_slots(now.date(), now)
    assert available_slots(now.date(), now)[0] == time(11)


def test_before_opening_offers_everything_today() -> None:
    now = datetime(2024, 5, 1, 7, 45)

    assert available_slots(now.date(), now) == DEFAULT_CATALOG


@pytest.mark.parametrize("hour", range(0, 24))
def test_has_available_slots_false_only_from_last_slot_hour(hour: int) -> None:
    now = datetime(2024, 5, 1, hour, 15)

    assert has_available_slots(now.date(), now) is (hour < 17)


def test_min_selectable_date_is_today_while_slots_remain() -> None:
    now = datetime(2024, 5, 1, 16, 59)

    assert min_selectable_date(now) == date(2024, 5, 1)


def test_min_selectable_date_rolls_to_tomorrow_after_last_slot() -> None:
    now = datetime(2024, 5, 31, 17, 0)

    assert min_selectable_date(now) == date(2024, 6, 1)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("10:00", time(10)), (" 17:00 ", time(17)), ("09:00", None), ("18:00", None),
     ("10:30", None), ("ten", None), ("", None)],
)
def test_parse_slot_only_accepts_catalog_members(value: str, expected) -> None:
    assert parse_slot(value) == expected


@pytest.mark.parametrize(
    ("day", "slot", "expired"),
    [
        (date(2024, 4, 30), time(17), True),
        (date(2024, 5, 1), time(14), True),
        (date(2024, 5, 1), time(15), True),
        (date(2024, 5, 1), time(16), False),
        (date(2024, 5, 2), time(10), False),
    ],
)
def test_is_slot_expired(day: date, slot: time, expired: bool) -> None:
    now = datetime(2024, 5, 1, 15, 5)

    assert is_slot_expired(day, slot, now) is expired


def test_slot_display_and_end() -> None:
    assert slot_display(time(10)) == "10:00 AM"
    assert slot_display(time(12)) == "12:00 PM"
    assert slot_display(time(17)) == "5:00 PM"
    assert slot_end(time(17)) == time(18)
    assert slot_end(time(23)) == time.max
