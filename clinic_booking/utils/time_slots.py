"""
Time slot helpers

The clinic grid uses 12-hour strings ("09:00 AM", "01:00 PM"). Every place
that combines a slot with a calendar date goes through combine_date_time so
the 12 AM / 12 PM conversion is applied identically.
"""
import re
from datetime import date, datetime, time
from typing import Tuple

_TIME_12H = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")


def parse_time_12h(value: str) -> Tuple[int, int]:
    """
    Convert a 12-hour time string to (hour, minute) on a 24-hour clock.

    "12:00 AM" -> (0, 0), "12:30 PM" -> (12, 30), "01:00 PM" -> (13, 0)

    Raises:
        ValueError: If the string is not a valid 12-hour time
    """
    match = _TIME_12H.match(value or "")
    if not match:
        raise ValueError(f"Invalid 12-hour time: {value!r}")

    hours, minutes = int(match.group(1)), int(match.group(2))
    period = match.group(3).upper()

    if not 1 <= hours <= 12 or not 0 <= minutes <= 59:
        raise ValueError(f"Invalid 12-hour time: {value!r}")

    if period == "PM" and hours < 12:
        hours += 12
    if period == "AM" and hours == 12:
        hours = 0
    return hours, minutes


def combine_date_time(day: date, slot: str) -> datetime:
    """Combine a calendar date with a 12-hour slot string."""
    hours, minutes = parse_time_12h(slot)
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, time(hours, minutes))


def format_time_12h(value: datetime) -> str:
    """Render a datetime's time-of-day in the grid's format ("01:00 PM")."""
    return value.strftime("%I:%M %p")


def slugify(value: str) -> str:
    """Lower-case and replace spaces with hyphens ("Aesthetic Treatments" -> "aesthetic-treatments")."""
    return (value or "").strip().lower().replace(" ", "-")
