# barber_booking/core.py

from datetime import datetime, time, timedelta
from typing import List, Optional

from .config import (
    DEFAULT_OPENING_TIME,
    DEFAULT_CLOSING_TIME,
    DEFAULT_SLOT_MINUTES,
    DEFAULT_CLOSED_WEEKDAYS,
    DEFAULT_DAILY_CAPACITY,
)

# values clients send when no particular employee was picked
EMPLOYEE_PLACEHOLDERS = {"", "0", "any", "all", "default", "none", "null", "undefined"}


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    """Half-open interval overlap: [start_a, end_a) and [start_b, end_b) share a moment.

    Back-to-back intervals (one ends exactly when the other starts) do not overlap.
    """
    return start_a < end_b and start_b < end_a


def parse_hhmm(value: str) -> time:
    return datetime.strptime(value.strip(), "%H:%M").time()


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def add_minutes(value: time, minutes: int) -> time:
    return (datetime.combine(datetime.min, value) + timedelta(minutes=minutes)).time()


def build_slot_grid(
    opening_time: Optional[time] = None,
    closing_time: Optional[time] = None,
    slot_minutes: Optional[int] = None,
) -> List[str]:
    """Slot start times ("HH:MM") for one business day.

    Without arguments this is the default grid: 16 slots of 45 minutes,
    09:30 through 20:45. A slot is only offered if it ends by closing time.
    """
    opening = opening_time or parse_hhmm(DEFAULT_OPENING_TIME)
    closing = closing_time or parse_hhmm(DEFAULT_CLOSING_TIME)
    step = slot_minutes or DEFAULT_SLOT_MINUTES

    start = to_minutes(opening)
    end = to_minutes(closing)

    grid = []
    current = start
    while current + step <= end:
        grid.append(f"{current // 60:02d}:{current % 60:02d}")
        current += step
    return grid


def slot_minutes_for_shop(shop) -> int:
    if shop is not None and shop.slot_minutes:
        return shop.slot_minutes
    return DEFAULT_SLOT_MINUTES


def slot_grid_for_shop(shop) -> List[str]:
    if shop is None:
        return build_slot_grid()
    return build_slot_grid(shop.opening_time, shop.closing_time, shop.slot_minutes)


def closed_weekdays_for_shop(shop) -> List[int]:
    if shop is not None and shop.closed_weekdays is not None:
        return list(shop.closed_weekdays)
    return list(DEFAULT_CLOSED_WEEKDAYS)


def capacity_for_shop(shop, override: Optional[int] = None) -> int:
    if override:
        return override
    if shop is not None and shop.daily_capacity:
        return shop.daily_capacity
    return DEFAULT_DAILY_CAPACITY


def is_placeholder_id(value) -> bool:
    if value is None:
        return True
    return str(value).strip().lower() in EMPLOYEE_PLACEHOLDERS
