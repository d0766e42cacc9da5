"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .assignment import AssignmentPolicy, FirstAvailable
from .booking_orchestrator import (
    AppointmentClientProtocol,
    BookingOrchestrator,
    BookingOutcome,
    BookingReference,
    CreatedAppointment,
    LineFailure,
    ScheduleClientProtocol,
)
from .cart import ANY_EMPLOYEE, BookingCart, SelectionState, ServiceSelection
from .payloads import AppointmentRequest

__all__ = [
    "ANY_EMPLOYEE",
    "AppointmentClientProtocol",
    "AppointmentRequest",
    "AssignmentPolicy",
    "BookingCart",
    "BookingOrchestrator",
    "BookingOutcome",
    "BookingReference",
    "CreatedAppointment",
    "FirstAvailable",
    "LineFailure",
    "ScheduleClientProtocol",
    "SelectionState",
    "ServiceSelection",
]
