"""
Policies deciding which employee serves an "any professional" booking.
"""

from typing import Optional, Protocol, Sequence

from ..domain.models import EmployeeId, Slot


class AssignmentPolicy(Protocol):
    """Picks the employee for a slot when the customer chose "any"."""

    def assign(self, slot: Slot, eligible: Sequence[EmployeeId]) -> Optional[EmployeeId]:
        """Return the employee to book, or None if nobody can take the slot."""


class FirstAvailable:
    """
    Book the first employee listed on the slot.

    Falls back to the first eligible employee for the service when the slot
    carries no employees at all.
    """

    def assign(self, slot: Slot, eligible: Sequence[EmployeeId]) -> Optional[EmployeeId]:
        if slot.employee_ids:
            return slot.employee_ids[0]
        if eligible:
            return eligible[0]
        return None
