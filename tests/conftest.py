"""
Shared pytest fixtures.
"""

import keyring
import pytest


class InMemoryKeyring:
    def __init__(self):
        self.passwords = {}

    def get_password(self, service, key):
        return self.passwords.get((service, key))

    def set_password(self, service, key, value):
        self.passwords[(service, key)] = value

    def delete_password(self, service, key):
        self.passwords.pop((service, key), None)


@pytest.fixture
def memory_keyring(monkeypatch):
    backend = InMemoryKeyring()
    monkeypatch.setattr(keyring, "get_password", backend.get_password)
    monkeypatch.setattr(keyring, "set_password", backend.set_password)
    monkeypatch.setattr(keyring, "delete_password", backend.delete_password)
    return backend
