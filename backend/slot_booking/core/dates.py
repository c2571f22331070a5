"""
Date and time-slot helpers shared by schemas and services.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_SLOT_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")


def parse_iso_date(value: str) -> date:
    """Parse a strict YYYY-MM-DD string. Raises ValueError otherwise."""
    if not isinstance(value, str) or not ISO_DATE_RE.match(value):
        raise ValueError(f"Invalid date format: {value!r}")
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_optional_date(value: Optional[str], default: Optional[date] = None) -> Optional[date]:
    """Lenient variant: malformed or missing input yields `default`."""
    if not value:
        return default
    try:
        return parse_iso_date(value)
    except ValueError:
        return default


def format_time_slot(value: Union[time, str]) -> str:
    """
    Normalize a stored or submitted slot to HH:MM.

    Databases hand TIME columns back as `datetime.time`, or as strings such
    as "09:00:00" / "09:00:00.000000" depending on the driver.
    """
    if isinstance(value, time):
        return value.strftime("%H:%M")
    hours, minutes = str(value).split(":")[:2]
    return f"{int(hours):02d}:{int(minutes):02d}"


def parse_time_slot(value: str) -> time:
    hours, minutes = format_time_slot(value).split(":")
    return time(int(hours), int(minutes))


def week_bounds(day: date) -> tuple[date, date]:
    """First (Monday) and last (Sunday) day of the ISO week containing `day`."""
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)
