"""
Expansion of recurring time-off exceptions onto a calendar window.
"""

from dataclasses import dataclass
from typing import Iterable, List

import pendulum
from pendulum import Date

from .models import ExpandedOccurrence, TimeOffException


@dataclass(frozen=True)
class ViewWindow:
    """
    An inclusive range of calendar days being displayed.

    Invariant: start must not be after end.
    """
    start: Date
    end: Date

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Window start {self.start} must not be after end {self.end}")

    def contains(self, date: Date) -> bool:
        return self.start <= date <= self.end

    @classmethod
    def for_month(cls, year: int, month: int) -> "ViewWindow":
        """The window covering a whole calendar month."""
        first = pendulum.date(year, month, 1)
        return cls(start=first, end=first.end_of("month"))


def expand_exception(
    exception: TimeOffException,
    window: ViewWindow,
) -> List[ExpandedOccurrence]:
    """
    Materialise one exception into per-day occurrences inside ``window``.

    A one-off exception yields itself when its date is in the window. A
    repeating one yields every day from ``date`` through ``repeat_until``
    (inclusive) that also lies inside the window.
    """
    if not exception.is_repeating:
        if window.contains(exception.date):
            return [ExpandedOccurrence(exception=exception, date=exception.date)]
        return []

    loop_start = max(exception.date, window.start)
    loop_end = min(exception.repeat_until, window.end)

    occurrences: List[ExpandedOccurrence] = []
    current = loop_start

    while current <= loop_end:
        if exception.date <= current <= exception.repeat_until:
            occurrences.append(ExpandedOccurrence(exception=exception, date=current))
        # Date.add returns a new value
        current = current.add(days=1)

    return occurrences


def expand_exceptions(
    exceptions: Iterable[TimeOffException],
    window: ViewWindow,
) -> List[ExpandedOccurrence]:
    """Expand several exceptions and order them by day, then start time."""
    occurrences: List[ExpandedOccurrence] = []
    for exception in exceptions:
        occurrences.extend(expand_exception(exception, window))

    return sorted(occurrences, key=lambda occ: (occ.date, occ.start_time.minutes))
