"""Secrets API client"""

import logging
import re
from typing import TYPE_CHECKING

from .config import DEFAULT_TTL_SECONDS, MAX_TTL_SECONDS, MIN_TTL_SECONDS
from .errors import InvalidInputError
from .models import CreateResult, CreateSecretRequest, CreateSecretResponse, RetrieveResult, SecretMetadata

if TYPE_CHECKING:
    from .client import OtsClient

logger = logging.getLogger("ots_client.secrets")

# Keys issued by the service are base36 tokens
_KEY_PATTERN = re.compile(r"[A-Za-z0-9]+")


class SecretsAPI:
    """Create, reveal, inspect and burn secrets.

    Revealing is destructive: the server deletes the secret as it returns
    it. Nothing here retries or caches, so a second ``retrieve_secret`` for
    the same key goes to the server and fails with ``NotFoundError``.
    """

    def __init__(self, client: "OtsClient"):
        self._client = client

    async def create_secret(
        self,
        secret: str,
        passphrase: str | None = None,
        ttl: int | None = DEFAULT_TTL_SECONDS,
        recipient: str | None = None,
    ) -> CreateResult:
        """Share a secret.

        Args:
            secret: Plaintext to share
            passphrase: Passphrase the recipient must supply (optional)
            ttl: Lifetime in seconds. ``None`` leaves it to the server default.
            recipient: Email address to notify (optional)

        Returns:
            CreateResult with the shareable ``link`` and the owner-facing ``metadata_key``

        Raises:
            InvalidInputError: Empty secret, or TTL out of range while
                ``enforce_ttl_bounds`` is enabled. No request is sent.

        Example:
            created = await client.secrets.create_secret("hunter2", ttl=600)
            # created.link == "https://onetimesecret.com/secret/<secret_key>"
        """
        if not secret:
            raise InvalidInputError("Secret cannot be empty")
        if ttl is not None and self._client.settings.enforce_ttl_bounds:
            if not MIN_TTL_SECONDS <= ttl <= MAX_TTL_SECONDS:
                raise InvalidInputError(
                    f"TTL must be between {MIN_TTL_SECONDS} second and 7 days ({MAX_TTL_SECONDS} seconds)"
                )

        payload = CreateSecretRequest(
            secret=secret,
            passphrase=passphrase or None,
            ttl=ttl,
            recipient=recipient or None,
        ).to_payload()

        url = "/api/v2/share"
        response = await self._client.request("POST", url, json_body=payload)
        data = self._client.parse(response, CreateSecretResponse)

        base_url = self._client.base_url
        result = CreateResult(
            secret_key=data.secret_key,
            metadata_key=data.metadata_key,
            link=f"{base_url}/secret/{data.secret_key}",
            metadata_link=f"{base_url}/private/{data.metadata_key}",
            ttl=data.ttl,
            created=data.created,
            updated=data.updated,
            recipient=data.recipient,
        )
        logger.info(f"Created secret (metadata_key={result.metadata_key}, ttl={result.ttl})")
        return result

    async def retrieve_secret(self, secret_key: str, passphrase: str | None = None) -> RetrieveResult:
        """Reveal a secret. The server burns it in the process.

        Args:
            secret_key: Consumer-facing key from the share link
            passphrase: Passphrase if the secret was protected with one

        Returns:
            RetrieveResult with the plaintext ``value``
        """
        segment = _path_segment(secret_key, "Secret key")

        # The server expects a JSON object even without a passphrase
        payload = {"passphrase": passphrase} if passphrase else {}

        url = f"/api/v2/secret/{segment}"
        response = await self._client.request("POST", url, json_body=payload)
        result = self._client.parse(response, RetrieveResult, secret_key=secret_key)
        logger.info(f"Retrieved secret {secret_key[:6]}...")
        return result

    async def get_metadata(self, metadata_key: str) -> SecretMetadata:
        """Get a secret's status without consuming it."""
        segment = _path_segment(metadata_key, "Metadata key")

        url = f"/api/v2/private/{segment}"
        response = await self._client.request("POST", url)
        metadata = self._client.parse(response, SecretMetadata, metadata_key=metadata_key)
        logger.info(f"Metadata for {metadata_key}: state={metadata.state}")
        return metadata

    async def delete_secret(self, metadata_key: str) -> SecretMetadata:
        """Burn a secret before it is read.

        Returns:
            The metadata after burning (``state == "burned"``)
        """
        segment = _path_segment(metadata_key, "Metadata key")

        url = f"/api/v2/private/{segment}"
        response = await self._client.request("POST", url, json_body={"action": "burn"})
        metadata = self._client.parse(response, SecretMetadata, metadata_key=metadata_key)
        logger.info(f"Burned secret {metadata_key}: state={metadata.state}")
        return metadata

    async def list_recent_metadata(self) -> list[SecretMetadata]:
        """List metadata for the secrets this account shared recently.

        Returns:
            Metadata records as returned by the service, newest first
        """
        url = "/api/v2/private/recent"
        response = await self._client.request("GET", url)
        records = self._client.parse_list(response, SecretMetadata)
        logger.info(f"Fetched {len(records)} recent secret(s)")
        return records


def _path_segment(key: str, label: str) -> str:
    """Check a key before it becomes part of a request path."""
    if not key:
        raise InvalidInputError(f"{label} cannot be empty")
    if not _KEY_PATTERN.fullmatch(key):
        raise InvalidInputError(f"{label} must contain only letters and digits")
    return key
