"""
Mock booking API client for trying the engine without a backend.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pendulum import Date

from ..domain.exceptions import AppointmentCreationFailed
from ..domain.models import EmployeeId, TimeOffException, WeekSchedule, parse_time_offs

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_schedule_data.json"

_DAY_NAMES = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]


class MockBookingApiClient:
    """
    Mock client that simulates the booking API.

    Schedules are loaded from a JSON file holding one weekly template per
    employee, keyed by weekday name:

    {
        "employees": {
            "1": {"mon": [{"type": "shift", "start": "09:00", "end": "17:00"}], ...}
        },
        "time_offs": [{"id": 7, "employee_id": 1, "date": "2025-03-01", ...}]
    }

    Created appointments are kept in memory and numbered from ``first_id``.
    """

    def __init__(
        self,
        data_file: Optional[Path] = None,
        fail_service_ids: Iterable[Any] = (),
        first_id: int = 1000,
    ):
        """
        Initialize the mock client.

        Args:
            data_file: Optional JSON fixture; defaults to the bundled one
            fail_service_ids: Services whose creation request is rejected
            first_id: Id given to the first created appointment
        """
        self.data_file = data_file or DEFAULT_DATA_FILE
        self.fail_service_ids = {str(service_id) for service_id in fail_service_ids}
        self.created: List[Dict[str, Any]] = []
        self._next_id = first_id
        self._load_data()

    def _load_data(self) -> None:
        if self.data_file.exists():
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        else:
            data = {}

        self.templates: Dict[str, Dict[str, list]] = data.get("employees", {})
        self.time_off_records: List[Dict[str, Any]] = data.get("time_offs", [])

    async def get_week_schedule(self, employee_id: EmployeeId, week_start: Date) -> WeekSchedule:
        """Lay the employee's weekly template over the seven days from ``week_start``."""
        template = self.templates.get(str(employee_id), {})
        days = []

        for offset in range(7):
            date = week_start.add(days=offset)
            items = template.get(_DAY_NAMES[date.weekday()]) or []
            days.append({"date": date.isoformat(), "items": items})

        return WeekSchedule.from_payload(employee_id, week_start, {"days": days})

    async def list_time_offs(self, employee_id: EmployeeId) -> List[TimeOffException]:
        return parse_time_offs(
            record
            for record in self.time_off_records
            if str(record.get("employee_id")) == str(employee_id)
        )

    async def create_appointment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if str(payload.get("ServiceId")) in self.fail_service_ids:
            raise AppointmentCreationFailed(
                f"Mock backend rejected service {payload.get('ServiceId')}"
            )

        record = dict(payload, Id=self._next_id)
        self._next_id += 1
        self.created.append(record)
        return record
