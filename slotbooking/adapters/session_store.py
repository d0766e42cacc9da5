"""
Storage of the signed-in customer's session.

Sign-in itself happens outside this library; the store only remembers who is
signed in so a confirm call can be re-invoked after authentication.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import keyring
from keyring.errors import KeyringError

from ..domain.models import CustomerIdentity

logger = logging.getLogger(__name__)


KEYRING_SERVICE_NAME = "slotbooking"


class SessionStore:
    """
    Keeps the customer session in the system keyring.

    When no keyring backend works, the session falls back to a plaintext file
    (mode 0600) and ``insecure_storage_warning`` explains why.
    """

    def __init__(self, account_id, session_file: Optional[Path] = None):
        """
        Initialize the store.

        Args:
            account_id: Business account the session belongs to
            session_file: Optional path of the plaintext fallback file
        """
        self.session_file = session_file or Path.home() / ".slotbooking_session.json"
        self._key_identifier = f"account:{account_id}"
        self._keyring_supported = True
        self._backend = "keyring"
        self._insecure_storage_warning: Optional[str] = None

    @property
    def backend(self) -> str:
        """Return the active backend (keyring or file)."""
        return self._backend

    @property
    def insecure_storage_warning(self) -> Optional[str]:
        return self._insecure_storage_warning

    def load(self) -> Optional[CustomerIdentity]:
        """Return the signed-in customer, or None when nobody is signed in."""
        serialized = self._load_from_keyring()
        if serialized is None:
            serialized = self._load_from_file()
        if not serialized:
            return None

        try:
            data = json.loads(serialized)
            customer_id = int(data["customer_id"])
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Could not deserialize customer session: %s", exc)
            return None

        if not customer_id:
            return None
        return CustomerIdentity(customer_id=customer_id, token=data.get("token"))

    def save(self, identity: CustomerIdentity) -> None:
        serialized = json.dumps({"customer_id": identity.customer_id, "token": identity.token})
        if self._keyring_supported and self._save_to_keyring(serialized):
            return
        self._save_to_file(serialized)

    def clear(self) -> None:
        """Forget the session (sign out)."""
        if self.session_file.exists():
            self.session_file.unlink()
        try:
            keyring.delete_password(KEYRING_SERVICE_NAME, self._key_identifier)
        except KeyringError as exc:  # pragma: no cover - environment dependent
            logger.debug("Nothing removed from keyring: %s", exc)

    def _load_from_keyring(self) -> Optional[str]:
        if not self._keyring_supported:
            return None

        try:
            return keyring.get_password(KEYRING_SERVICE_NAME, self._key_identifier)
        except KeyringError as exc:  # pragma: no cover - environment dependent
            self._handle_keyring_failure(f"reading credentials failed: {exc}")
            return None

    def _load_from_file(self) -> Optional[str]:
        if self.session_file.exists():
            try:
                with open(self.session_file, "r", encoding="utf-8") as file_handle:
                    return file_handle.read()
            except OSError as exc:
                logger.warning("Could not load session file %s: %s", self.session_file, exc)
        return None

    def _save_to_keyring(self, serialized: str) -> bool:
        try:
            keyring.set_password(KEYRING_SERVICE_NAME, self._key_identifier, serialized)
            self._backend = "keyring"
            return True
        except KeyringError as exc:  # pragma: no cover - environment dependent
            self._handle_keyring_failure(f"writing credentials failed: {exc}")
            return False

    def _save_to_file(self, serialized: str) -> None:
        try:
            self.session_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.session_file, "w", encoding="utf-8") as file_handle:
                file_handle.write(serialized)
            self.session_file.chmod(0o600)
        except OSError as exc:
            logger.warning("Could not save session to %s: %s", self.session_file, exc)

    def _handle_keyring_failure(self, reason: str) -> None:
        if self._keyring_supported:
            logger.warning(
                "Secure credential storage unavailable (%s). Falling back to plaintext file.",
                reason,
            )
        self._keyring_supported = False
        self._backend = "file"
        if not self._insecure_storage_warning:
            self._insecure_storage_warning = (
                f"Secure credential storage unavailable ({reason}). "
                f"Falling back to plaintext session file at {self.session_file}."
            )
