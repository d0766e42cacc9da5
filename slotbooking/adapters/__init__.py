"""
Adapters layer - External integrations (booking REST API, local storage).
"""

from .api_client import BookingApiClient
from .cart_store import CartStore
from .mock_api_client import MockBookingApiClient
from .session_store import SessionStore

__all__ = ["BookingApiClient", "CartStore", "MockBookingApiClient", "SessionStore"]
