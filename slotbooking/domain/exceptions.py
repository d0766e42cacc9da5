"""
Domain-specific exception hierarchy for the booking engine.
"""


class BookingError(Exception):
    """Base class for all booking engine errors."""


class InvalidTimeFormat(BookingError, ValueError):
    """Raised when a clock-time label or minute offset cannot be interpreted."""


class ConfigError(BookingError):
    """Raised when the configuration file cannot be loaded."""


class UnknownCartLine(BookingError, KeyError):
    """Raised when an operation names a service that is not in the cart."""

    def __init__(self, service_id):
        super().__init__(service_id)
        self.service_id = service_id

    def __str__(self) -> str:
        return f"Service {self.service_id} is not in the booking cart"


class SlotNotAvailable(BookingError):
    """Raised when a time is picked that is not among the line's current slots."""


class EmptyCart(BookingError):
    """Raised when a booking is confirmed with nothing in the cart."""


class IncompleteSelection(BookingError):
    """Raised when a cart line is confirmed before date, time and employee are set."""

    def __init__(self, service_id, service_name: str = ""):
        label = service_name or str(service_id)
        super().__init__(f'Please select date & time for "{label}" before confirming.')
        self.service_id = service_id
        self.service_name = service_name


class AuthenticationRequired(BookingError):
    """Raised when a booking is confirmed without an authenticated customer."""


class ScheduleFetchFailed(BookingError):
    """Raised when an employee's weekly schedule cannot be fetched or parsed."""


class AppointmentCreationFailed(BookingError):
    """Raised when a single appointment-creation request is rejected or fails."""
