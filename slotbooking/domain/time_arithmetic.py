"""
Clock-time and calendar-date arithmetic.

Slot labels produced here ("09:30 AM") are used as equality keys when
availability from several employees is merged, so the 12-hour rendering in
``format_label`` must stay stable.
"""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from typing import Union

import pendulum
from pendulum import Date

from .exceptions import InvalidTimeFormat

MINUTES_PER_DAY = 24 * 60

_TWELVE_HOUR = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")
_TWENTY_FOUR_HOUR = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")


def _check_minutes(minutes: int) -> int:
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise InvalidTimeFormat(f"Minute offset must be an integer, got {minutes!r}")
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidTimeFormat(
            f"Minute offset must be between 0 and {MINUTES_PER_DAY - 1}, got {minutes}"
        )
    return minutes


def format_label(minutes: int) -> str:
    """
    Render a minute-of-day offset as a 12-hour label.

    Hour and minute are zero padded and the suffix is uppercase:
    0 -> "12:00 AM", 720 -> "12:00 PM", 1439 -> "11:59 PM".
    """
    _check_minutes(minutes)
    hour, minute = divmod(minutes, 60)
    suffix = "PM" if hour >= 12 else "AM"
    hour = hour % 12 or 12
    return f"{hour:02d}:{minute:02d} {suffix}"


@dataclass(frozen=True, order=True)
class ClockTime:
    """
    A time of day with minute precision.

    Equality, hashing and ordering all use the minute-of-day value, so
    ``parse_clock_time("14:00") == parse_clock_time("02:00 PM")``.
    """
    minutes: int

    def __post_init__(self):
        _check_minutes(self.minutes)

    @property
    def hour(self) -> int:
        return self.minutes // 60

    @property
    def minute(self) -> int:
        return self.minutes % 60

    @property
    def label(self) -> str:
        """12-hour display label, e.g. "09:30 AM"."""
        return format_label(self.minutes)

    def to_24h(self) -> str:
        """24-hour "HH:MM" form used by the schedule API."""
        return f"{self.hour:02d}:{self.minute:02d}"

    def __str__(self) -> str:
        return self.label


ClockTimeLike = Union[ClockTime, str, dt.time]


def parse_clock_time(label: ClockTimeLike) -> ClockTime:
    """
    Parse a clock-time label.

    Accepts a 12-hour label with an AM/PM suffix ("09:30 AM", "9:30 pm") or a
    24-hour "HH:MM" value with optional seconds ("14:05", "14:05:00").

    Raises:
        InvalidTimeFormat: If the label matches neither form
    """
    if isinstance(label, ClockTime):
        return label
    if isinstance(label, dt.time):
        return ClockTime(label.hour * 60 + label.minute)
    if not isinstance(label, str):
        raise InvalidTimeFormat(f"Unrecognised clock time: {label!r}")

    match = _TWELVE_HOUR.match(label)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        suffix = match.group(3).upper()
        if not 1 <= hour <= 12 or minute > 59:
            raise InvalidTimeFormat(f"Unrecognised clock time: {label!r}")
        if suffix == "PM" and hour != 12:
            hour += 12
        if suffix == "AM" and hour == 12:
            hour = 0
        return ClockTime(hour * 60 + minute)

    match = _TWENTY_FOUR_HOUR.match(label)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        seconds = int(match.group(3) or 0)
        if hour > 23 or minute > 59 or seconds > 59:
            raise InvalidTimeFormat(f"Unrecognised clock time: {label!r}")
        return ClockTime(hour * 60 + minute)

    raise InvalidTimeFormat(f"Unrecognised clock time: {label!r}")


def to_minutes(value: ClockTimeLike) -> int:
    """Return the minute-of-day offset in [0, 1440)."""
    return parse_clock_time(value).minutes


def from_minutes(minutes: int) -> ClockTime:
    """Build a ClockTime from a minute-of-day offset."""
    return ClockTime(_check_minutes(minutes))


def parse_calendar_date(value: Union[str, dt.date]) -> Date:
    """
    Coerce an ISO date string or date object to an immutable pendulum Date.

    Raises:
        ValueError: If the value is not a date
    """
    if isinstance(value, dt.date):
        return pendulum.date(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Could not parse date: {value!r}")

    parsed = pendulum.parse(value.strip(), exact=True)
    if isinstance(parsed, dt.date):
        return pendulum.date(parsed.year, parsed.month, parsed.day)

    raise ValueError(f"Could not parse date: {value!r}")
