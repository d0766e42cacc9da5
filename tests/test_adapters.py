"""
Tests for the REST and mock API clients.
"""

import asyncio
import json
import logging

import pendulum
import pytest
import requests

from slotbooking.adapters.api_client import BookingApiClient
from slotbooking.adapters.mock_api_client import MockBookingApiClient
from slotbooking.domain.exceptions import AppointmentCreationFailed, ScheduleFetchFailed


class FakeResponse:
    def __init__(self, data=None, status_code=200):
        self._data = data
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")

    def json(self):
        if isinstance(self._data, Exception):
            raise self._data
        return self._data


class FakeSession:
    """Stands in for requests.Session and records every call."""

    def __init__(self, response):
        self.response = response
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _client(response, token=None):
    session = FakeSession(response)
    return BookingApiClient("https://api.example.com/", access_token=token, session=session), session


class TestBookingApiClient:
    """Tests for BookingApiClient."""

    def test_get_week_schedule(self):
        """The week is requested by start date and parsed into domain models."""
        client, session = _client(
            FakeResponse(
                {
                    "days": [
                        {"date": "2025-04-10", "items": [{"type": "shift", "start": "09:00", "end": "10:00"}]},
                    ]
                }
            ),
            token="abc",
        )

        week = asyncio.run(client.get_week_schedule(5, pendulum.date(2025, 4, 7)))

        method, url, kwargs = session.calls[0]
        assert method == "GET"
        assert url == "https://api.example.com/api/employees/5/schedule"
        assert kwargs["params"] == {"week_start": "2025-04-07"}
        assert kwargs["headers"]["Authorization"] == "Bearer abc"
        assert week.employee_id == 5
        assert len(week.day(pendulum.date(2025, 4, 10)).intervals) == 1

    def test_schedule_http_error(self):
        """HTTP failures become ScheduleFetchFailed."""
        client, _ = _client(FakeResponse({}, status_code=500))

        with pytest.raises(ScheduleFetchFailed):
            asyncio.run(client.get_week_schedule(5, pendulum.date(2025, 4, 7)))

    def test_schedule_connection_error(self):
        """Network failures become ScheduleFetchFailed."""
        client, _ = _client(requests.exceptions.ConnectionError("down"))

        with pytest.raises(ScheduleFetchFailed):
            asyncio.run(client.get_week_schedule(5, pendulum.date(2025, 4, 7)))

    def test_schedule_invalid_json(self):
        """An unparseable body is a failed fetch."""
        client, _ = _client(FakeResponse(json.JSONDecodeError("bad", "", 0)))

        with pytest.raises(ScheduleFetchFailed):
            asyncio.run(client.get_week_schedule(5, pendulum.date(2025, 4, 7)))

    def test_create_appointment_unwraps_data(self):
        """Wrapped and bare responses both return the record."""
        client, session = _client(FakeResponse({"data": {"Id": 900, "Status": "Pending"}}))

        record = asyncio.run(client.create_appointment({"ServiceId": 1}))

        assert record["Id"] == 900
        method, url, kwargs = session.calls[0]
        assert method == "POST"
        assert url == "https://api.example.com/api/appointments"
        assert kwargs["json"] == {"ServiceId": 1}

    def test_create_appointment_failure(self):
        """A rejected request becomes AppointmentCreationFailed."""
        client, _ = _client(FakeResponse({"message": "taken"}, status_code=422))

        with pytest.raises(AppointmentCreationFailed):
            asyncio.run(client.create_appointment({"ServiceId": 1}))

    def test_list_time_offs_skips_invalid_records(self):
        """Records breaking the repeat invariant are dropped."""
        client, _ = _client(
            FakeResponse(
                {
                    "data": [
                        {"id": 1, "employee_id": 5, "date": "2025-03-01", "start_time": "10:00", "end_time": "12:00",
                         "is_repeat": True, "repeat_until": "2025-03-03"},
                        {"id": 2, "employee_id": 5, "date": "2025-03-01", "start_time": "10:00", "end_time": "12:00",
                         "is_repeat": True, "repeat_until": None},
                    ]
                }
            )
        )

        exceptions = asyncio.run(client.list_time_offs(5))

        assert [exception.id for exception in exceptions] == [1]


class TestMockBookingApiClient:
    """Tests for MockBookingApiClient."""

    def test_weekly_template_is_laid_over_requested_week(self):
        """Weekday templates become dated days."""
        client = MockBookingApiClient()

        week = asyncio.run(client.get_week_schedule(1, pendulum.date(2025, 4, 7)))

        assert len(week.days) == 7
        wednesday = week.day(pendulum.date(2025, 4, 9))
        assert [interval.kind.value for interval in wednesday.intervals] == ["shift", "timeoff", "shift"]
        assert week.day(pendulum.date(2025, 4, 13)).intervals == ()

    def test_unknown_employee_has_empty_week(self):
        """Employees missing from the fixture never work."""
        week = asyncio.run(MockBookingApiClient().get_week_schedule(99, pendulum.date(2025, 4, 7)))

        assert all(day.intervals == () for day in week.days)

    def test_create_and_fail(self):
        """Ids count up; configured services are rejected."""
        client = MockBookingApiClient(fail_service_ids=[14])

        first = asyncio.run(client.create_appointment({"ServiceId": 12}))
        assert first["Id"] == 1000

        with pytest.raises(AppointmentCreationFailed):
            asyncio.run(client.create_appointment({"ServiceId": 14}))

        assert len(client.created) == 1

    def test_time_offs_for_employee(self):
        """Only the employee's own records are returned."""
        exceptions = asyncio.run(MockBookingApiClient().list_time_offs(1))

        assert [exception.id for exception in exceptions] == [11]
        assert exceptions[0].is_repeating

    def test_invalid_time_offs_are_skipped(self, tmp_path, caplog):
        """A broken fixture record is logged and left out, like the REST client does."""
        data_file = tmp_path / "mock.json"
        data_file.write_text(
            json.dumps(
                {
                    "time_offs": [
                        {"id": 1, "employee_id": 4, "date": "2025-03-01",
                         "start_time": "10:00", "end_time": "11:00"},
                        {"id": 2, "employee_id": 4, "date": "2025-03-02",
                         "start_time": "10:00", "end_time": "11:00", "is_repeat": True},
                    ]
                }
            )
        )

        with caplog.at_level(logging.WARNING):
            exceptions = asyncio.run(MockBookingApiClient(data_file=data_file).list_time_offs(4))

        assert [exception.id for exception in exceptions] == [1]
        assert "Could not parse time off record" in caplog.text
