"""
Application service for multi-service bookings.

The orchestrator coordinates schedule retrieval via client adapters, delegates
slot computation to the domain layer, and submits one appointment per cart line
when the customer confirms. Clients are described by small protocols so the
REST adapter, the mock adapter or a test stub can be plugged in.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

import pendulum
from pendulum import Date, DateTime

from ..domain.availability import find_slot, merge_slots
from ..domain.exceptions import (
    AppointmentCreationFailed,
    AuthenticationRequired,
    EmptyCart,
    IncompleteSelection,
    ScheduleFetchFailed,
    SlotNotAvailable,
)
from ..domain.models import CustomerIdentity, EmployeeId, Slot, WeekSchedule
from ..domain.slot_generator import SlotGenerator
from ..domain.time_arithmetic import ClockTimeLike, parse_calendar_date, parse_clock_time
from .assignment import AssignmentPolicy, FirstAvailable
from .cart import BookingCart, EmployeeChoice, SelectionState, ServiceSelection
from .payloads import AppointmentRequest

logger = logging.getLogger(__name__)


class ScheduleClientProtocol(Protocol):
    """Protocol describing the schedule lookup needed by the orchestrator."""

    async def get_week_schedule(self, employee_id: EmployeeId, week_start: Date) -> WeekSchedule:
        """Return the employee's week; raise ScheduleFetchFailed on failure."""


class AppointmentClientProtocol(Protocol):
    """Protocol describing appointment creation."""

    async def create_appointment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create one appointment and return the stored record (with "Id")."""


Roster = Callable[[Any], Sequence[EmployeeId]]


@dataclass(frozen=True)
class CreatedAppointment:
    service_id: Any
    appointment_id: Any
    request: AppointmentRequest


@dataclass(frozen=True)
class LineFailure:
    """The cart line whose submission failed, 1-based ``position`` in cart order."""
    service_id: Any
    service_name: str
    position: int
    error: AppointmentCreationFailed


@dataclass(frozen=True)
class BookingReference:
    """Ordered ids of the appointments created by one checkout."""
    appointment_ids: Tuple[Any, ...]

    @property
    def canonical_id(self) -> Any:
        """The id follow-up steps such as payment are keyed on."""
        return self.appointment_ids[0]

    def as_query(self) -> str:
        return "ids=" + ",".join(str(appointment_id) for appointment_id in self.appointment_ids)


@dataclass(frozen=True)
class BookingOutcome:
    """
    Result of a confirm call.

    Submissions are not transactional: when ``failed`` is set, every entry in
    ``succeeded`` has already been created and stays created.
    """
    succeeded: Tuple[CreatedAppointment, ...]
    failed: Optional[LineFailure] = None

    @property
    def is_complete(self) -> bool:
        return self.failed is None

    @property
    def reference(self) -> Optional[BookingReference]:
        if not self.succeeded:
            return None
        return BookingReference(tuple(created.appointment_id for created in self.succeeded))


class BookingOrchestrator:
    """
    Drives the per-line selection state machine and the confirm pipeline.

    Lines move EMPTY -> AWAITING_TIME -> READY. Changing the employee or the
    date of a line sends it back to AWAITING_TIME with its time cleared.
    """

    def __init__(
        self,
        schedule_client: ScheduleClientProtocol,
        appointment_client: AppointmentClientProtocol,
        roster: Roster,
        account_id: Any,
        timezone: str = "UTC",
        assignment_policy: Optional[AssignmentPolicy] = None,
        slot_generator: Optional[SlotGenerator] = None,
        clock: Optional[Callable[[], DateTime]] = None,
    ) -> None:
        self._schedule_client = schedule_client
        self._appointment_client = appointment_client
        self._roster = roster
        self._account_id = account_id
        self._timezone = timezone
        self._assignment_policy = assignment_policy or FirstAvailable()
        self._slot_generator = slot_generator or SlotGenerator()
        self._clock = clock or (lambda: pendulum.now(self._timezone))

    # -- selection -----------------------------------------------------------

    async def choose_employee(
        self,
        cart: BookingCart,
        service_id: Any,
        employee_choice: EmployeeChoice,
    ) -> ServiceSelection:
        """Set a line's employee ("any" or an id) and reload its slots if a date is set."""
        line = cart.line(service_id)
        line.change_scope(employee_choice=employee_choice)
        if line.date is not None:
            await self.refresh_slots(cart, service_id)
        return line

    async def choose_date(self, cart: BookingCart, service_id: Any, date: Any) -> ServiceSelection:
        """Set a line's date and load its slots."""
        line = cart.line(service_id)
        line.change_scope(date=parse_calendar_date(date))
        await self.refresh_slots(cart, service_id)
        return line

    async def refresh_slots(self, cart: BookingCart, service_id: Any) -> ServiceSelection:
        """
        Fetch schedules for the line's scope and recompute its slots.

        A response for a scope that changed while the fetch was in flight is
        discarded. A failed fetch leaves the line with no slots.
        """
        line = cart.line(service_id)
        if line.date is None:
            line.time_slots = []
            return line

        revision = line.revision
        date = line.date
        employee_ids = self._employees_in_scope(line)

        results = await asyncio.gather(
            *(
                self._employee_slots(employee_id, date, line.service.duration_minutes)
                for employee_id in employee_ids
            ),
            return_exceptions=True,
        )

        if line.revision != revision:
            logger.debug(
                "Discarding stale schedule response for service %s (revision %s, now %s)",
                line.service_id,
                revision,
                line.revision,
            )
            return line

        failures = [result for result in results if isinstance(result, BaseException)]
        for failure in failures:
            if not isinstance(failure, ScheduleFetchFailed):
                raise failure

        if failures:
            logger.warning(
                "Slot load failed for service %s on %s: %s",
                line.service_id,
                date,
                failures[0],
            )
            line.time_slots = []
            return line

        if line.is_any:
            line.time_slots = merge_slots(results)
        else:
            line.time_slots = list(results[0]) if results else []

        return line

    def choose_time(self, cart: BookingCart, service_id: Any, time: ClockTimeLike) -> ServiceSelection:
        """
        Pick one of the line's slots and resolve the employee who will serve it.

        Raises:
            SlotNotAvailable: If the time is not among the line's current slots
        """
        line = cart.line(service_id)
        wanted = parse_clock_time(time)
        slot = find_slot(line.time_slots, wanted)
        if slot is None:
            raise SlotNotAvailable(
                f"{wanted} is not available for service {line.service_id} on {line.date}"
            )

        employee_id = self._resolve_employee(line, slot)
        if employee_id is None:
            raise SlotNotAvailable(f"No employee can take {wanted} for service {line.service_id}")

        line.time = slot.time
        line.resolved_employee_id = employee_id
        return line

    # -- confirmation ----------------------------------------------------------

    async def confirm(
        self,
        cart: BookingCart,
        customer: Optional[CustomerIdentity],
    ) -> BookingOutcome:
        """
        Submit one appointment per cart line, in cart order, one at a time.

        Stops at the first failed submission. Lines already created are not
        rolled back; the outcome lists them together with the failed line.
        The cart is cleared only when every line was created.

        Raises:
            EmptyCart: If there is nothing to book
            IncompleteSelection: If a line is not READY
            AuthenticationRequired: If no customer is signed in
        """
        if cart.is_empty:
            raise EmptyCart("No services selected.")

        for line in cart:
            if line.state is not SelectionState.READY:
                raise IncompleteSelection(line.service_id, line.service.name)

        if customer is None or not customer.customer_id:
            raise AuthenticationRequired("Sign in to confirm your booking.")

        # every request is validated before the first one is sent
        pending = [(line, self.build_request(line, customer)) for line in cart]
        succeeded: List[CreatedAppointment] = []

        for position, (line, request) in enumerate(pending, start=1):
            try:
                record = await self._appointment_client.create_appointment(request.to_payload())
                appointment_id = self._appointment_id(record)
            except Exception as exc:
                error = self._creation_failure(line, exc)
                logger.warning(
                    "Appointment %d of %d (service %s) failed after %d succeeded: %s",
                    position,
                    len(pending),
                    line.service_id,
                    len(succeeded),
                    error,
                )
                failure = LineFailure(
                    service_id=line.service_id,
                    service_name=line.service.name,
                    position=position,
                    error=error,
                )
                return BookingOutcome(succeeded=tuple(succeeded), failed=failure)

            succeeded.append(
                CreatedAppointment(
                    service_id=line.service_id,
                    appointment_id=appointment_id,
                    request=request,
                )
            )

        cart.clear()
        logger.info("Created %d appointment(s)", len(succeeded))
        return BookingOutcome(succeeded=tuple(succeeded))

    def build_request(self, line: ServiceSelection, customer: CustomerIdentity) -> AppointmentRequest:
        """Build the creation request for a READY line."""
        start = pendulum.datetime(
            line.date.year,
            line.date.month,
            line.date.day,
            line.time.hour,
            line.time.minute,
            tz=self._timezone,
        )
        end = start.add(minutes=line.service.duration_minutes)

        return AppointmentRequest(
            service_id=line.service_id,
            employee_id=line.resolved_employee_id,
            customer_id=customer.customer_id,
            account_id=self._account_id,
            start_date_time=start,
            end_date_time=end,
            cost=line.service.price,
            deposit=line.service.deposit,
            final_amount=line.service.price,
            date_created=self._clock(),
        )

    # -- helpers -----------------------------------------------------------------

    def _employees_in_scope(self, line: ServiceSelection) -> List[EmployeeId]:
        if line.is_any:
            return list(self._roster(line.service_id))
        return [line.employee_choice]

    def _resolve_employee(self, line: ServiceSelection, slot: Slot) -> Optional[EmployeeId]:
        if not line.is_any:
            return line.employee_choice
        return self._assignment_policy.assign(slot, list(self._roster(line.service_id)))

    async def _employee_slots(
        self,
        employee_id: EmployeeId,
        date: Date,
        duration_minutes: int,
    ) -> List[Slot]:
        week = await self._schedule_client.get_week_schedule(employee_id, date.start_of("week"))
        return self._slot_generator.slots_for_day(week, date, duration_minutes)

    @staticmethod
    def _creation_failure(line: ServiceSelection, exc: Exception) -> AppointmentCreationFailed:
        if isinstance(exc, AppointmentCreationFailed):
            return exc
        error = AppointmentCreationFailed(
            f"Creating appointment for service {line.service_id} failed: {exc!r}"
        )
        error.__cause__ = exc
        return error

    @staticmethod
    def _appointment_id(record: Any) -> Any:
        if isinstance(record, dict) and record.get("Id") is not None:
            return record["Id"]
        raise AppointmentCreationFailed(f"Appointment response carried no Id: {record!r}")
