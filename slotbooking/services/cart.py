"""
Booking cart and per-service selection state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from pendulum import Date

from ..domain.exceptions import UnknownCartLine
from ..domain.models import CatalogService, EmployeeId, Slot, catalog_by_id
from ..domain.time_arithmetic import ClockTime

ANY_EMPLOYEE = "any"

EmployeeChoice = Union[str, EmployeeId]


class SelectionState(str, Enum):
    EMPTY = "empty"
    AWAITING_TIME = "awaiting_time"
    READY = "ready"


@dataclass
class ServiceSelection:
    """
    One cart line: the scheduling choices for a single service.

    ``employee_chosen`` records an explicit employee choice, "any" included.
    ``revision`` increases on every scope change (employee or date) and is
    used to recognise schedule responses that arrive for a superseded scope.
    """
    service: CatalogService
    employee_choice: EmployeeChoice = ANY_EMPLOYEE
    date: Optional[Date] = None
    time: Optional[ClockTime] = None
    resolved_employee_id: Optional[EmployeeId] = None
    time_slots: List[Slot] = field(default_factory=list)
    revision: int = 0
    employee_chosen: bool = False

    @property
    def service_id(self) -> Any:
        return self.service.service_id

    @property
    def is_any(self) -> bool:
        return self.employee_choice == ANY_EMPLOYEE

    @property
    def state(self) -> SelectionState:
        if self.date is not None and self.time is not None and self.resolved_employee_id is not None:
            return SelectionState.READY
        if self.date is None and not self.employee_chosen:
            return SelectionState.EMPTY
        return SelectionState.AWAITING_TIME

    def change_scope(
        self,
        *,
        employee_choice: Optional[EmployeeChoice] = None,
        date: Optional[Date] = None,
    ) -> int:
        """
        Apply a new employee and/or date and drop everything derived from the old one.

        Returns the new revision.
        """
        if employee_choice is not None:
            self.employee_choice = employee_choice
            self.employee_chosen = True
        if date is not None:
            self.date = date

        self.time = None
        self.resolved_employee_id = None
        self.time_slots = []
        self.revision += 1
        return self.revision


class BookingCart:
    """
    Ordered collection of cart lines, one per distinct service.

    The cart is owned by the caller and passed into every orchestrator
    operation. Only the service ids are meant to be persisted; selections are
    rebuilt from the catalog.
    """

    def __init__(self, lines: Iterable[ServiceSelection] = ()):
        self._lines: Dict[str, ServiceSelection] = {}
        for line in lines:
            self._lines.setdefault(str(line.service_id), line)

    @classmethod
    def from_service_ids(
        cls,
        service_ids: Iterable[Any],
        catalog: Iterable[CatalogService],
    ) -> "BookingCart":
        """Rebuild a cart from persisted ids; ids missing from the catalog are dropped."""
        services = catalog_by_id(catalog)
        cart = cls()
        for service_id in service_ids:
            service = services.get(str(service_id))
            if service is not None:
                cart.add_service(service)
        return cart

    def add_service(self, service: CatalogService) -> ServiceSelection:
        key = str(service.service_id)
        if key not in self._lines:
            self._lines[key] = ServiceSelection(service=service)
        return self._lines[key]

    def remove_service(self, service_id: Any) -> None:
        self._lines.pop(str(service_id), None)

    def line(self, service_id: Any) -> ServiceSelection:
        try:
            return self._lines[str(service_id)]
        except KeyError:
            raise UnknownCartLine(service_id) from None

    @property
    def lines(self) -> List[ServiceSelection]:
        return list(self._lines.values())

    def service_ids(self) -> List[Any]:
        return [line.service_id for line in self._lines.values()]

    def clear(self) -> None:
        self._lines.clear()

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[ServiceSelection]:
        return iter(list(self._lines.values()))
