"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability import find_slot, merge_slots, sort_chronologically
from .models import (
    CatalogService,
    CustomerIdentity,
    DaySchedule,
    ExpandedOccurrence,
    IntervalKind,
    Slot,
    TimeOffException,
    WeekSchedule,
    WorkInterval,
    parse_time_offs,
)
from .recurrence import ViewWindow, expand_exception, expand_exceptions
from .slot_generator import SlotGenerator
from .time_arithmetic import ClockTime, format_label, from_minutes, parse_clock_time, to_minutes

__all__ = [
    "CatalogService",
    "ClockTime",
    "CustomerIdentity",
    "DaySchedule",
    "ExpandedOccurrence",
    "IntervalKind",
    "Slot",
    "SlotGenerator",
    "TimeOffException",
    "ViewWindow",
    "WeekSchedule",
    "WorkInterval",
    "expand_exception",
    "expand_exceptions",
    "find_slot",
    "format_label",
    "from_minutes",
    "merge_slots",
    "parse_time_offs",
    "parse_clock_time",
    "sort_chronologically",
    "to_minutes",
]
