"""
Domain models for schedules, slots, time-off and the service catalog.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Hashable, Iterable, List, Optional, Tuple

from pendulum import Date

from .time_arithmetic import ClockTime, parse_calendar_date, parse_clock_time

logger = logging.getLogger(__name__)

EmployeeId = Hashable

DEFAULT_DURATION_MINUTES = 30


class IntervalKind(str, Enum):
    SHIFT = "shift"
    TIMEOFF = "timeoff"


@dataclass(frozen=True)
class WorkInterval:
    """
    A contiguous interval on one calendar day for one staff member.

    Invariant: start must be before end (no overnight wraparound).
    """
    kind: IntervalKind
    start: ClockTime
    end: ClockTime
    label: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "kind", IntervalKind(self.kind))
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    @property
    def is_shift(self) -> bool:
        return self.kind is IntervalKind.SHIFT

    def duration_minutes(self) -> int:
        return self.end.minutes - self.start.minutes

    @classmethod
    def from_payload(cls, item: Dict[str, Any]) -> "WorkInterval":
        """Build an interval from a schedule item like {"type", "start", "end"}."""
        return cls(
            kind=IntervalKind(item["type"]),
            start=parse_clock_time(item["start"]),
            end=parse_clock_time(item["end"]),
            label=item.get("label"),
        )


@dataclass(frozen=True)
class DaySchedule:
    """One staff member's intervals on one day, in the order the API returned them."""
    date: Date
    intervals: Tuple[WorkInterval, ...] = ()


@dataclass(frozen=True)
class WeekSchedule:
    """A week of day schedules for one employee."""
    employee_id: EmployeeId
    week_start: Date
    days: Tuple[DaySchedule, ...] = ()

    def day(self, date: Date) -> Optional[DaySchedule]:
        for day in self.days:
            if day.date == date:
                return day
        return None

    @classmethod
    def from_payload(
        cls,
        employee_id: EmployeeId,
        week_start: Date,
        payload: Dict[str, Any],
    ) -> "WeekSchedule":
        """
        Parse a weekly schedule response.

        Response format:
        {
            "days": [
                {
                    "date": "2025-04-10",
                    "items": [
                        {"type": "shift", "start": "09:00", "end": "17:00"},
                        {"type": "timeoff", "start": "12:00", "end": "13:00", "label": "Lunch"}
                    ]
                }
            ]
        }

        Days or items that cannot be parsed are skipped with a warning.
        """
        days = []

        for raw_day in (payload or {}).get("days") or []:
            try:
                date = parse_calendar_date(raw_day["date"])
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping schedule day for employee %s: %s", employee_id, exc)
                continue

            intervals = []
            for item in raw_day.get("items") or []:
                try:
                    intervals.append(WorkInterval.from_payload(item))
                except (KeyError, TypeError, ValueError) as exc:
                    logger.warning(
                        "Could not parse schedule item for employee %s on %s: %s",
                        employee_id,
                        date,
                        exc,
                    )

            days.append(DaySchedule(date=date, intervals=tuple(intervals)))

        return cls(employee_id=employee_id, week_start=week_start, days=tuple(days))


@dataclass(frozen=True)
class Slot:
    """
    A bookable start time and the staff members who can serve it.

    ``employee_ids`` behaves as an ordered set: duplicates are dropped and the
    order of first appearance is kept for display.
    """
    time: ClockTime
    employee_ids: Tuple[EmployeeId, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "employee_ids", tuple(dict.fromkeys(self.employee_ids)))

    @property
    def label(self) -> str:
        return self.time.label


@dataclass(frozen=True)
class TimeOffException:
    """
    A staff absence, optionally repeating daily until ``repeat_until``.

    Invariant: a repeating exception has a ``repeat_until`` on or after ``date``.
    """
    id: Any
    employee_id: EmployeeId
    date: Date
    start_time: ClockTime
    end_time: ClockTime
    is_repeating: bool = False
    repeat_until: Optional[Date] = None
    note: Optional[str] = None

    def __post_init__(self):
        if self.is_repeating:
            if self.repeat_until is None:
                raise ValueError(f"Repeating time off {self.id} needs a repeat_until date")
            if self.repeat_until < self.date:
                raise ValueError(
                    f"repeat_until {self.repeat_until} is before the start date {self.date}"
                )

    def occurrence_key(self, date: Date) -> str:
        return f"{self.id}-{date.isoformat()}"

    @classmethod
    def from_payload(cls, record: Dict[str, Any]) -> "TimeOffException":
        """Build from an API record with snake_case keys (is_repeat, repeat_until, ...)."""
        is_repeating = _parse_flag(record.get("is_repeat", record.get("repeat")))
        repeat_until = record.get("repeat_until")
        return cls(
            id=record["id"],
            employee_id=record.get("employee_id"),
            date=parse_calendar_date(record["date"]),
            start_time=parse_clock_time(record["start_time"]),
            end_time=parse_clock_time(record["end_time"]),
            is_repeating=is_repeating,
            repeat_until=parse_calendar_date(repeat_until) if is_repeating and repeat_until else None,
            note=record.get("note"),
        )


@dataclass(frozen=True)
class ExpandedOccurrence:
    """A time-off exception materialised onto one concrete day."""
    exception: TimeOffException
    date: Date

    @property
    def key(self) -> str:
        """Synthetic identity that never collides with the exception's own id."""
        return self.exception.occurrence_key(self.date)

    @property
    def employee_id(self) -> EmployeeId:
        return self.exception.employee_id

    @property
    def start_time(self) -> ClockTime:
        return self.exception.start_time

    @property
    def end_time(self) -> ClockTime:
        return self.exception.end_time


def _parse_flag(value: Any) -> bool:
    """Read a boolean flag that may arrive as bool, number or string ("0", "false", "yes")."""
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in ("1", "true", "yes", "y", "on"):
            return True
        if normalized in ("", "0", "false", "no", "n", "off", "null", "none"):
            return False
        raise ValueError(f"Invalid boolean flag: {value!r}")
    return bool(value)


def parse_time_offs(records: Iterable[Dict[str, Any]]) -> List[TimeOffException]:
    """Parse time-off records, skipping the ones that cannot be read."""
    exceptions: List[TimeOffException] = []
    for record in records:
        try:
            exceptions.append(TimeOffException.from_payload(record))
        except (KeyError, TypeError, ValueError) as exc:
            identifier = record.get("id") if isinstance(record, dict) else None
            logger.warning("Could not parse time off record %r: %s", identifier, exc)
    return exceptions


def duration_to_minutes(value: Any, unit: Optional[str] = "mins") -> int:
    """
    Convert a catalog duration to minutes.

    ``unit`` is "mins" or "hours"; a missing value falls back to 30 minutes.
    """
    minutes = int(float(value)) if value not in (None, "") else DEFAULT_DURATION_MINUTES
    if (unit or "mins").lower() == "hours":
        minutes *= 60
    if minutes <= 0:
        raise ValueError(f"Service duration must be positive, got {value} {unit}")
    return minutes


@dataclass(frozen=True)
class CatalogService:
    """A bookable service as supplied by the external service catalog."""
    service_id: Any
    name: str
    duration_minutes: int = DEFAULT_DURATION_MINUTES
    price: float = 0.0
    deposit: float = 0.0

    @classmethod
    def from_payload(cls, record: Dict[str, Any]) -> "CatalogService":
        """Build from a catalog record (Id, Name, DefaultAppointmentDuration, DurationUnit, ...)."""
        return cls(
            service_id=record["Id"],
            name=record.get("Name", ""),
            duration_minutes=duration_to_minutes(
                record.get("DefaultAppointmentDuration"),
                record.get("DurationUnit"),
            ),
            price=float(record.get("TotalPrice") or 0),
            deposit=float(record.get("Deposit") or 0),
        )


@dataclass(frozen=True)
class CustomerIdentity:
    """The authenticated customer a booking is made for."""
    customer_id: int
    token: Optional[str] = field(default=None, repr=False)


def catalog_by_id(services: Iterable[CatalogService]) -> Dict[str, CatalogService]:
    """Index catalog entries by stringified id; ids arrive as both int and str."""
    return {str(service.service_id): service for service in services}
