"""
File-backed persistence of the booking cart.

Only service ids are stored; the cart is rebuilt from the service catalog.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..services.cart import BookingCart

logger = logging.getLogger(__name__)


class CartStore:
    """Stores ``[{"serviceId": ..., "accountId": ...}]`` in a JSON file."""

    def __init__(self, path: Path):
        self.path = path

    def load_entries(self) -> List[Dict[str, Any]]:
        """Return stored entries; a missing or unreadable file is an empty cart."""
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as file_handle:
                data = json.load(file_handle)
        except (OSError, ValueError) as exc:
            logger.warning("Could not load cart file %s: %s", self.path, exc)
            return []

        if not isinstance(data, list):
            logger.warning("Ignoring cart file %s: expected a list", self.path)
            return []

        return [entry for entry in data if isinstance(entry, dict) and "serviceId" in entry]

    def load_service_ids(self, account_id: Optional[Any] = None) -> List[Any]:
        """Stored service ids in insertion order, optionally for one account only."""
        service_ids: List[Any] = []
        for entry in self.load_entries():
            if account_id is not None and str(entry.get("accountId")) != str(account_id):
                continue
            if entry["serviceId"] not in service_ids:
                service_ids.append(entry["serviceId"])
        return service_ids

    def add(self, service_id: Any, account_id: Any) -> None:
        entries = self.load_entries()
        if any(str(entry["serviceId"]) == str(service_id) for entry in entries):
            return
        entries.append({"serviceId": service_id, "accountId": account_id})
        self._write(entries)

    def save(self, cart: BookingCart, account_id: Any) -> None:
        self._write(
            [{"serviceId": service_id, "accountId": account_id} for service_id in cart.service_ids()]
        )

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def _write(self, entries: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as file_handle:
            json.dump(entries, file_handle)
