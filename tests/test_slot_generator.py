"""
Tests for slot generator.
"""

import pendulum
import pytest

from slotbooking.domain.models import IntervalKind, WeekSchedule, WorkInterval
from slotbooking.domain.slot_generator import SlotGenerator
from slotbooking.domain.time_arithmetic import from_minutes, parse_clock_time


def _interval(start: str, end: str, kind: str = "shift") -> WorkInterval:
    return WorkInterval(kind=IntervalKind(kind), start=parse_clock_time(start), end=parse_clock_time(end))


class TestSlotGenerator:
    """Tests for SlotGenerator."""

    def test_generate_slots_for_single_shift(self):
        """Slots step by the service duration from the shift start."""
        generator = SlotGenerator()

        slots = generator.generate_slots([_interval("09:00", "11:00")], 30, employee_id=4)

        assert [slot.label for slot in slots] == ["09:00 AM", "09:30 AM", "10:00 AM", "10:30 AM"]
        assert all(slot.employee_ids == (4,) for slot in slots)

    def test_last_slot_must_fit_before_shift_end(self):
        """A remainder shorter than the duration is not bookable."""
        generator = SlotGenerator()

        slots = generator.generate_slots([_interval("09:00", "10:40")], 45, employee_id=1)

        assert [slot.label for slot in slots] == ["09:00 AM", "09:45 AM"]

    @pytest.mark.parametrize(
        "start, end, duration",
        [(540, 1020, 30), (540, 1020, 45), (0, 1439, 60), (600, 615, 15), (750, 1000, 25), (480, 500, 7)],
    )
    def test_slot_count_and_spacing(self, start, end, duration):
        """floor((e - s) / d) slots, d minutes apart, none running past the end."""
        generator = SlotGenerator()
        interval = WorkInterval(kind=IntervalKind.SHIFT, start=from_minutes(start), end=from_minutes(end))

        slots = generator.generate_slots([interval], duration, employee_id=1)

        assert len(slots) == (end - start) // duration
        minutes = [slot.time.minutes for slot in slots]
        assert minutes[0] == start
        assert all(later - earlier == duration for earlier, later in zip(minutes, minutes[1:]))
        assert all(m + duration <= end for m in minutes)

    def test_shift_shorter_than_duration_yields_nothing(self):
        """09:00-09:20 cannot host a 30-minute service."""
        generator = SlotGenerator()

        assert generator.generate_slots([_interval("09:00", "09:20")], 30, employee_id=1) == []

    def test_time_off_is_not_subtracted(self):
        """Time-off intervals are display-only and do not remove shift slots."""
        generator = SlotGenerator()
        intervals = [
            _interval("09:00", "11:00"),
            _interval("10:00", "10:30", kind="timeoff"),
        ]

        slots = generator.generate_slots(intervals, 30, employee_id=1)

        assert "10:00 AM" in [slot.label for slot in slots]
        assert len(slots) == 4

    def test_time_off_alone_yields_nothing(self):
        """Only shifts generate slots."""
        generator = SlotGenerator()

        assert generator.generate_slots([_interval("09:00", "17:00", kind="timeoff")], 30, employee_id=1) == []

    def test_multiple_shifts_concatenate_in_interval_order(self):
        """No sorting or de-duplication happens at this stage."""
        generator = SlotGenerator()
        intervals = [
            _interval("14:00", "15:00"),
            _interval("09:00", "10:00"),
            _interval("09:00", "09:30"),
        ]

        slots = generator.generate_slots(intervals, 30, employee_id=2)

        assert [slot.label for slot in slots] == [
            "02:00 PM",
            "02:30 PM",
            "09:00 AM",
            "09:30 AM",
            "09:00 AM",
        ]

    def test_non_positive_duration_rejected(self):
        """A zero duration would never advance."""
        with pytest.raises(ValueError, match="duration_minutes must be greater than zero"):
            SlotGenerator().generate_slots([_interval("09:00", "10:00")], 0, employee_id=1)

    def test_slots_for_day(self):
        """The requested day is picked out of a week; missing days are empty."""
        week = WeekSchedule.from_payload(
            employee_id=9,
            week_start=pendulum.date(2025, 4, 7),
            payload={
                "days": [
                    {"date": "2025-04-10", "items": [{"type": "shift", "start": "10:00", "end": "11:00"}]},
                ]
            },
        )
        generator = SlotGenerator()

        slots = generator.slots_for_day(week, pendulum.date(2025, 4, 10), 30)

        assert [slot.label for slot in slots] == ["10:00 AM", "10:30 AM"]
        assert slots[0].employee_ids == (9,)
        assert generator.slots_for_day(week, pendulum.date(2025, 4, 11), 30) == []
