"""
Turns one employee's working intervals for a day into bookable start times.

This is pure domain logic without any external dependencies (no API calls,
no I/O).
"""

from typing import Iterable, List

from pendulum import Date

from .models import EmployeeId, Slot, WeekSchedule, WorkInterval
from .time_arithmetic import from_minutes


class SlotGenerator:
    """
    Generates back-to-back slots of a fixed duration inside each shift.

    Algorithm:
    1. Skip every interval that is not a shift
    2. Step from the shift start in increments of the service duration
    3. Emit a slot while the whole service still fits before the shift end
    4. Concatenate slots from several shifts in interval order

    Time-off intervals are not subtracted from shifts. They are only shown on
    the calendar, so an employee on a break still offers slots during it.
    """

    def generate_slots(
        self,
        day_intervals: Iterable[WorkInterval],
        duration_minutes: int,
        employee_id: EmployeeId,
    ) -> List[Slot]:
        """
        Produce the start times one employee can serve on one day.

        Args:
            day_intervals: The day's intervals in API order
            duration_minutes: Length of the service being booked
            employee_id: Employee every slot is attributed to

        Returns:
            Slots in interval order, chronological within each interval.
            Nothing is de-duplicated here.
        """
        if duration_minutes <= 0:
            raise ValueError(f"duration_minutes must be greater than zero, got {duration_minutes}")

        slots: List[Slot] = []

        for interval in day_intervals:
            if not interval.is_shift:
                continue

            end = interval.end.minutes
            step = interval.start.minutes

            while step + duration_minutes <= end:
                slots.append(Slot(time=from_minutes(step), employee_ids=(employee_id,)))
                step += duration_minutes

        return slots

    def slots_for_day(
        self,
        week: WeekSchedule,
        date: Date,
        duration_minutes: int,
    ) -> List[Slot]:
        """Slots for ``date`` taken from a fetched week; a missing day has none."""
        day = week.day(date)
        if day is None:
            return []
        return self.generate_slots(day.intervals, duration_minutes, week.employee_id)
