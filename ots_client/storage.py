"""Secure key-value stores backing the credential vault.

A store holds named string slots under a fixed service name. "Entry not
found" is a normal result (``get`` returns ``None``, ``delete`` returns
``False``); anything a store raises is a real failure.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

import keyring
from keyring.errors import PasswordDeleteError

logger = logging.getLogger(__name__)


@runtime_checkable
class SecretStore(Protocol):
    """Capability interface over named string slots."""

    def get(self, key: str) -> str | None:
        """Return the slot value, or ``None`` if the slot is empty."""
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> bool:
        """Clear the slot. Returns ``False`` if it was already empty."""
        ...


class KeyringStore:
    """Platform keychain store (macOS Keychain, Secret Service, Windows Credential Locker).

    Each slot is a keyring entry with ``service_name`` as the service and the
    slot key as the account name.
    """

    def __init__(self, service_name: str) -> None:
        self.service_name = service_name

    def get(self, key: str) -> str | None:
        return keyring.get_password(self.service_name, key)

    def set(self, key: str, value: str) -> None:
        keyring.set_password(self.service_name, key, value)

    def delete(self, key: str) -> bool:
        try:
            keyring.delete_password(self.service_name, key)
        except PasswordDeleteError:
            logger.debug(f"Keyring entry {self.service_name}/{key} already absent")
            return False
        return True


class MemoryStore:
    """In-process store for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def __contains__(self, key: str) -> bool:
        return key in self._data
