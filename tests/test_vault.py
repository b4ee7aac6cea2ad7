"""Tests for the credential vault and its stores."""

import json
from unittest.mock import patch

import pytest
from keyring.errors import KeyringError, PasswordDeleteError

from ots_client import (
    ConfigurationError,
    Credential,
    CredentialVault,
    InvalidInputError,
    KeyringStore,
    MemoryStore,
    SerializationError,
    StorageError,
    load_persisted_credential,
)
from ots_client.vault import CONFIG_SLOT, SECRET_SLOT


class FailingStore(MemoryStore):
    """Memory store that raises on writes to the given slots."""

    def __init__(self, fail_on: set[str], exc: Exception = RuntimeError("keychain locked")):
        super().__init__()
        self.fail_on = fail_on
        self.exc = exc

    def set(self, key: str, value: str) -> None:
        if key in self.fail_on:
            raise self.exc
        super().set(key, value)

    def get(self, key: str):
        if key in self.fail_on:
            raise self.exc
        return super().get(key)


class TestVaultRoundTrip:
    def test_save_then_load(self, vault, credential):
        vault.save(credential)
        assert vault.load() == credential

    def test_load_when_never_configured(self, vault):
        assert vault.load() is None

    def test_delete_then_load(self, vault, credential):
        vault.save(credential)
        vault.delete()
        assert vault.load() is None

    def test_delete_is_idempotent(self, vault):
        vault.delete()
        vault.delete()
        assert vault.load() is None

    def test_save_overwrites(self, vault, credential):
        vault.save(credential)
        updated = Credential(identity="other@example.test", secret_key="xyz", endpoint="https://eu.example.test")
        vault.save(updated)
        assert vault.load() == updated


class TestVaultLayout:
    """The API key is kept apart from the rest of the configuration."""

    def test_slots(self, vault, memory_store, credential):
        vault.save(credential)

        config = json.loads(memory_store.get(CONFIG_SLOT))
        assert config == {"identity": credential.identity, "endpoint": credential.endpoint}
        assert memory_store.get(SECRET_SLOT) == credential.secret_key

    def test_config_without_secret_loads(self, vault, memory_store, credential):
        vault.save(credential)
        memory_store.delete(SECRET_SLOT)

        loaded = vault.load()

        assert loaded is not None
        assert loaded.identity == credential.identity
        assert loaded.endpoint == credential.endpoint
        assert loaded.secret_key is None

    def test_get_secret_only(self, vault, credential):
        assert vault.get_secret_only() is None
        vault.save(credential)
        assert vault.get_secret_only() == credential.secret_key


class TestVaultValidation:
    def test_invalid_credential_not_saved(self, vault, memory_store):
        bad = Credential.model_construct(identity="", secret_key="key", endpoint="https://example.test")

        with pytest.raises(InvalidInputError):
            vault.save(bad)
        assert CONFIG_SLOT not in memory_store
        assert SECRET_SLOT not in memory_store

    def test_credential_without_key_not_saved(self, vault, memory_store):
        with pytest.raises(InvalidInputError):
            vault.save(Credential(identity="user", endpoint="https://example.test"))
        assert CONFIG_SLOT not in memory_store

    def test_email_policy(self, memory_store):
        vault = CredentialVault(memory_store, require_email=True)
        with pytest.raises(InvalidInputError):
            vault.save(Credential(identity="user", secret_key="key", endpoint="https://example.test"))

    def test_rejects_non_store(self):
        with pytest.raises(ConfigurationError):
            CredentialVault(object())


class TestVaultFailures:
    def test_store_error_becomes_storage_error(self, credential):
        vault = CredentialVault(FailingStore({SECRET_SLOT}))

        with pytest.raises(StorageError, match="keychain locked"):
            vault.save(credential)

    def test_partial_write_not_rolled_back(self, credential):
        store = FailingStore({CONFIG_SLOT})
        vault = CredentialVault(store)

        with pytest.raises(StorageError):
            vault.save(credential)
        assert store._data[SECRET_SLOT] == credential.secret_key

    def test_read_failure(self):
        vault = CredentialVault(FailingStore({CONFIG_SLOT}))
        with pytest.raises(StorageError):
            vault.load()

    def test_corrupt_config(self, memory_store):
        memory_store.set(CONFIG_SLOT, "{not json")
        with pytest.raises(SerializationError):
            CredentialVault(memory_store).load()

    def test_config_not_an_object(self, memory_store):
        memory_store.set(CONFIG_SLOT, '["a", "b"]')
        with pytest.raises(SerializationError):
            CredentialVault(memory_store).load()

    def test_invalid_stored_config(self, memory_store):
        memory_store.set(CONFIG_SLOT, json.dumps({"identity": "user", "endpoint": "nope"}))
        with pytest.raises(ConfigurationError):
            CredentialVault(memory_store).load()


class TestKeyringStore:
    """KeyringStore maps keyring's not-found signals to absent results."""

    def test_get_missing(self):
        with patch("ots_client.storage.keyring") as mock_keyring:
            mock_keyring.get_password.return_value = None
            assert KeyringStore("svc").get(SECRET_SLOT) is None
            mock_keyring.get_password.assert_called_once_with("svc", SECRET_SLOT)

    def test_set(self):
        with patch("ots_client.storage.keyring") as mock_keyring:
            KeyringStore("svc").set(SECRET_SLOT, "abc")
            mock_keyring.set_password.assert_called_once_with("svc", SECRET_SLOT, "abc")

    def test_delete_missing_entry(self):
        with patch("ots_client.storage.keyring") as mock_keyring:
            mock_keyring.delete_password.side_effect = PasswordDeleteError("Password not found")
            assert KeyringStore("svc").delete(SECRET_SLOT) is False

    def test_delete_existing_entry(self):
        with patch("ots_client.storage.keyring") as mock_keyring:
            assert KeyringStore("svc").delete(SECRET_SLOT) is True

    def test_vault_delete_on_empty_keychain(self):
        with patch("ots_client.storage.keyring") as mock_keyring:
            mock_keyring.delete_password.side_effect = PasswordDeleteError("Password not found")
            CredentialVault(KeyringStore("svc")).delete()
            assert mock_keyring.delete_password.call_count == 2

    def test_backend_failure_is_storage_error(self):
        with patch("ots_client.storage.keyring") as mock_keyring:
            mock_keyring.get_password.side_effect = KeyringError("No recommended backend")
            with pytest.raises(StorageError, match="No recommended backend"):
                CredentialVault(KeyringStore("svc")).load()

    def test_from_settings_uses_service_name(self, settings):
        vault = CredentialVault.from_settings(settings)
        assert isinstance(vault.store, KeyringStore)
        assert vault.store.service_name == settings.service_name


class TestLoadPersistedCredential:
    """Startup loading never raises."""

    @pytest.mark.asyncio
    async def test_loads_stored_credential(self, vault, credential):
        vault.save(credential)
        assert await load_persisted_credential(vault) == credential

    @pytest.mark.asyncio
    async def test_absent(self, vault):
        assert await load_persisted_credential(vault) is None

    @pytest.mark.asyncio
    async def test_corrupt_data_ignored(self, memory_store):
        memory_store.set(CONFIG_SLOT, "{not json")
        assert await load_persisted_credential(CredentialVault(memory_store)) is None

    @pytest.mark.asyncio
    async def test_store_failure_ignored(self):
        vault = CredentialVault(FailingStore({CONFIG_SLOT}))
        assert await load_persisted_credential(vault) is None
