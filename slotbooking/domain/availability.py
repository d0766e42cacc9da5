"""
Combines per-employee slot lists into "any professional" availability.
"""

from typing import Dict, Iterable, List, Optional

from .models import Slot
from .time_arithmetic import ClockTime, ClockTimeLike, parse_clock_time


def merge_slots(per_employee_slot_lists: Iterable[Iterable[Slot]]) -> List[Slot]:
    """
    Merge slot lists so each distinct time appears once.

    Every merged slot carries the union of employees offering that time, in
    order of first appearance. The output keeps the order in which each time
    was first seen across the inputs; it is NOT re-sorted chronologically.
    Use ``sort_chronologically`` when time order matters.

    Example:
    Alice: [09:00, 09:30]
    Bob:   [09:30, 10:00]
    Result: [09:00 {Alice}, 09:30 {Alice, Bob}, 10:00 {Bob}]
    """
    merged: Dict[ClockTime, List] = {}

    for slot_list in per_employee_slot_lists:
        for slot in slot_list:
            merged.setdefault(slot.time, []).extend(slot.employee_ids)

    return [
        Slot(time=time, employee_ids=tuple(employee_ids))
        for time, employee_ids in merged.items()
    ]


def sort_chronologically(slots: Iterable[Slot]) -> List[Slot]:
    """Return slots ordered by minute of day."""
    return sorted(slots, key=lambda slot: slot.time.minutes)


def find_slot(slots: Iterable[Slot], time: ClockTimeLike) -> Optional[Slot]:
    """Find the slot starting at ``time`` (label, 24h string or ClockTime)."""
    wanted = parse_clock_time(time)
    for slot in slots:
        if slot.time == wanted:
            return slot
    return None
