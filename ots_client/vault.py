from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from .config import ClientSettings, get_settings
from .errors import ConfigurationError, InvalidInputError, OtsError, SerializationError, StorageError
from .models import Credential, build_credential, check_credential
from .storage import KeyringStore, SecretStore

logger = logging.getLogger(__name__)

CONFIG_SLOT = "api_config"
SECRET_SLOT = "api_key"


class CredentialVault:
    """
    CredentialVault persists API credentials in a secure store.

    The API key and the rest of the configuration live in separate slots so
    that a backend can protect them differently, and so that a configuration
    can exist before a key has been entered.

    Examples:
        # Platform keychain
        vault = CredentialVault(KeyringStore("onetimesecret-desktop"))

        # From settings (keychain under settings.service_name)
        vault = CredentialVault.from_settings()

        # Tests
        vault = CredentialVault(MemoryStore())
    """

    store: SecretStore
    require_email: bool

    def __init__(self, store: SecretStore, *, require_email: bool = False):
        """Initialize the vault over a store.

        Args:
            store: Backing store implementing the SecretStore protocol
            require_email: Reject identities without an "@"

        Raises:
            ConfigurationError: If ``store`` does not implement SecretStore
        """
        if not isinstance(store, SecretStore):
            raise ConfigurationError(f"Invalid store type: {type(store)}")
        self.store = store
        self.require_email = require_email

    @classmethod
    def from_settings(cls, settings: ClientSettings | None = None) -> "CredentialVault":
        """Create a keychain-backed vault from settings."""
        settings = settings or get_settings()
        return cls(
            KeyringStore(settings.service_name),
            require_email=settings.require_email_identity,
        )

    def save(self, credential: Credential) -> None:
        """Validate and persist a credential.

        The key is written first, then the configuration. There is no
        cross-slot transaction: if the second write fails the first is not
        rolled back, and the caller should retry ``save`` as a whole.

        Raises:
            InvalidInputError: If the credential is incomplete or invalid
            StorageError: If either write fails
        """
        credential = build_credential(
            credential.identity,
            credential.secret_key,
            credential.endpoint,
            require_email=self.require_email,
        )
        if credential.secret_key is None:
            raise InvalidInputError("API key cannot be empty")

        config_json = json.dumps({"identity": credential.identity, "endpoint": credential.endpoint})

        self._call("save API key", self.store.set, SECRET_SLOT, credential.secret_key)
        self._call("save API configuration", self.store.set, CONFIG_SLOT, config_json)
        logger.info(f"Saved credentials for {credential.identity} ({credential.masked_key})")

    def load(self) -> Credential | None:
        """Load the stored credential.

        Returns:
            ``None`` if nothing was ever saved. A credential with
            ``secret_key=None`` if the configuration exists without a key.

        Raises:
            StorageError: If the store fails
            SerializationError: If the stored configuration is not valid JSON
            ConfigurationError: If the stored configuration fails validation
        """
        raw = self._call("read API configuration", self.store.get, CONFIG_SLOT)
        if raw is None:
            logger.debug("No stored API configuration")
            return None

        data = self._parse_config(raw)
        secret_key = self.get_secret_only()
        if secret_key is None:
            logger.info("Stored configuration has no API key")

        try:
            credential = Credential(
                identity=data.get("identity", ""),
                secret_key=secret_key,
                endpoint=data.get("endpoint", ""),
            )
            check_credential(credential, require_email=self.require_email)
        except (ValueError, OtsError) as e:
            raise ConfigurationError(f"Stored configuration is invalid: {e}") from e
        return credential

    def delete(self) -> None:
        """Remove both slots. Absent slots are not an error."""
        removed_secret = self._call("delete API key", self.store.delete, SECRET_SLOT)
        removed_config = self._call("delete API configuration", self.store.delete, CONFIG_SLOT)
        logger.info(f"Deleted stored credentials (key={removed_secret}, config={removed_config})")

    def get_secret_only(self) -> str | None:
        """Read just the API key slot."""
        return self._call("read API key", self.store.get, SECRET_SLOT)

    @staticmethod
    def _parse_config(raw: str) -> dict[str, Any]:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise SerializationError(f"Stored configuration is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise SerializationError("Stored configuration is not a JSON object")
        return data

    @staticmethod
    def _call(action: str, func: Any, *args: Any) -> Any:
        try:
            return func(*args)
        except OtsError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to {action}: {e}") from e


async def load_persisted_credential(vault: CredentialVault) -> Credential | None:
    """Load stored credentials at startup without blocking the event loop.

    Absent or corrupt data is logged and reported as ``None`` so the
    application starts unconfigured instead of failing.
    """
    try:
        return await asyncio.to_thread(vault.load)
    except OtsError as e:
        logger.warning(f"Ignoring stored credentials ({e.code}): {e.message}")
        return None
