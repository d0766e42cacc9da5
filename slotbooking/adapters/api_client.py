"""
REST client for the booking API (schedules, time-offs, appointments).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Type

import requests
from pendulum import Date

from ..domain.exceptions import AppointmentCreationFailed, BookingError, ScheduleFetchFailed
from ..domain.models import EmployeeId, TimeOffException, WeekSchedule, parse_time_offs

logger = logging.getLogger(__name__)


class BookingApiClient:
    """
    Client for the booking backend.

    Requests are made with ``requests`` in a worker thread so the async
    orchestrator can await them without blocking other cart lines.
    """

    def __init__(
        self,
        base_url: str,
        access_token: Optional[str] = None,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Root URL of the booking backend
            access_token: Optional bearer token of the signed-in customer
            timeout: Per-request timeout in seconds
            session: Optional preconfigured requests session
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if access_token:
            self.headers["Authorization"] = f"Bearer {access_token}"

    async def get_week_schedule(self, employee_id: EmployeeId, week_start: Date) -> WeekSchedule:
        """
        Get one employee's schedule for the week starting at ``week_start``.

        Raises:
            ScheduleFetchFailed: If the request fails or returns invalid JSON
        """
        data = await asyncio.to_thread(
            self._request,
            "GET",
            f"/api/employees/{employee_id}/schedule",
            ScheduleFetchFailed,
            params={"week_start": week_start.isoformat()},
        )
        if not isinstance(data, dict):
            raise ScheduleFetchFailed(f"Unexpected schedule response for employee {employee_id}")
        return WeekSchedule.from_payload(employee_id, week_start, data)

    async def list_time_offs(self, employee_id: EmployeeId) -> List[TimeOffException]:
        """
        Get an employee's time-off exceptions.

        Records that violate the repeat invariant are skipped with a warning.
        """
        data = await asyncio.to_thread(
            self._request,
            "GET",
            f"/api/employees/{employee_id}/time-offs",
            BookingError,
        )
        return parse_time_offs(self._unwrap(data) or [])

    async def create_appointment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create one appointment.

        Raises:
            AppointmentCreationFailed: If the backend rejects the request
        """
        data = await asyncio.to_thread(
            self._request,
            "POST",
            "/api/appointments",
            AppointmentCreationFailed,
            json=payload,
        )
        record = self._unwrap(data)
        if not isinstance(record, dict):
            raise AppointmentCreationFailed(f"Unexpected appointment response: {data!r}")
        return record

    def _request(
        self,
        method: str,
        path: str,
        error_type: Type[BookingError],
        **kwargs: Any,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                headers=self.headers,
                timeout=self.timeout,
                **kwargs,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as exc:
            raise error_type(f"{method} {url} failed: {exc}") from exc
        except ValueError as exc:
            raise error_type(f"{method} {url} returned invalid JSON: {exc}") from exc

    @staticmethod
    def _unwrap(data: Any) -> Any:
        """Responses come either bare or wrapped as {"data": ...}."""
        if isinstance(data, dict) and "data" in data:
            return data["data"]
        return data
