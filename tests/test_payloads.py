"""
Tests for employee assignment and the appointment request payload.
"""

import pendulum
import pytest
from pydantic import ValidationError

from slotbooking.domain.models import Slot
from slotbooking.domain.time_arithmetic import ClockTime
from slotbooking.services.assignment import FirstAvailable
from slotbooking.services.payloads import AppointmentRequest


class TestFirstAvailable:
    """Tests for the FirstAvailable policy."""

    def test_first_employee_on_slot(self):
        slot = Slot(time=ClockTime(600), employee_ids=(3, 1))

        assert FirstAvailable().assign(slot, [1, 2, 3]) == 3

    def test_falls_back_to_first_eligible(self):
        """A slot without employees books the first eligible one."""
        slot = Slot(time=ClockTime(600), employee_ids=())

        assert FirstAvailable().assign(slot, [2, 1]) == 2

    def test_nobody_available(self):
        assert FirstAvailable().assign(Slot(time=ClockTime(600), employee_ids=()), []) is None


class TestAppointmentRequest:
    """Tests for AppointmentRequest."""

    def _request(self, **overrides):
        start = pendulum.datetime(2025, 4, 10, 10, 0, tz="Europe/London")
        values = dict(
            service_id=12,
            employee_id=1,
            customer_id=77,
            account_id=42,
            start_date_time=start,
            end_date_time=start.add(minutes=30),
            cost=25.0,
            deposit=5.0,
            final_amount=25.0,
            date_created=start,
        )
        values.update(overrides)
        return AppointmentRequest(**values)

    def test_payload_uses_api_keys(self):
        payload = self._request().to_payload()

        assert payload["ServiceId"] == 12
        assert payload["Status"] == "Pending"
        assert payload["Tip"] == 0
        assert payload["RefundAmount"] == 0
        assert payload["Discount"] == 0
        assert payload["StartDateTime"] == "2025-04-10T10:00:00+01:00"
        assert payload["EndDateTime"] == "2025-04-10T10:30:00+01:00"

    def test_end_must_follow_start(self):
        start = pendulum.datetime(2025, 4, 10, 10, 0, tz="UTC")

        with pytest.raises(ValidationError, match="EndDateTime"):
            self._request(start_date_time=start, end_date_time=start)
