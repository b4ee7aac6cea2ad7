"""OneTimeSecret API client"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from typing import TYPE_CHECKING, Any, Awaitable, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .config import ClientSettings, get_settings
from .errors import (
    AuthenticationError,
    ConfigurationError,
    InvalidInputError,
    NetworkError,
    OtsError,
    RequestTimeoutError,
    SerializationError,
    error_for_status,
)
from .models import Credential, build_credential
from .transport import Transport

if TYPE_CHECKING:
    from .vault import CredentialVault

logger = logging.getLogger("ots_client")

ModelT = TypeVar("ModelT", bound=BaseModel)
T = TypeVar("T")


class OtsClient:
    """
    OneTimeSecret API client

    One client per credential. The client holds no mutable state after
    construction; when credentials change, build a new client.

    Example:
        from ots_client import Credential, OtsClient

        credential = Credential(
            identity="user@example.com",
            secret_key="api-key",
            endpoint="https://onetimesecret.com",
        )

        async with OtsClient(credential) as client:
            created = await client.secrets.create_secret("hunter2", ttl=3600)
            print(created.link)

        # From the keychain
        client = OtsClient.from_vault(CredentialVault.from_settings())
    """

    def __init__(
        self,
        credential: Credential,
        *,
        settings: ClientSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client

        Args:
            credential: Validated credential with an API key
            settings: Client settings. Defaults to the process settings.
            transport: Custom httpx transport, mainly for tests

        Raises:
            InvalidInputError: If the credential fails validation
            AuthenticationError: If the credential has no API key
            ConfigurationError: If the endpoint is not https
        """
        self.settings = settings or get_settings()
        credential = build_credential(
            credential.identity,
            credential.secret_key,
            credential.endpoint,
            require_email=self.settings.require_email_identity,
        )
        if credential.secret_key is None:
            raise AuthenticationError("No API key configured")

        self.credential = credential
        self.base_url = credential.endpoint.rstrip("/")

        logger.debug(
            f"Initializing OTS client: base_url={self.base_url}, "
            f"identity={credential.identity}, api_key={credential.masked_key}"
        )

        token = base64.b64encode(f"{credential.identity}:{credential.secret_key}".encode()).decode()
        self._auth_header = f"Basic {token}"

        self._transport = Transport(
            self.base_url,
            user_agent=self.settings.user_agent,
            timeout=self.settings.timeout,
            connect_timeout=self.settings.connect_timeout,
            transport=transport,
        )

        # Import here to avoid circular dependency
        from .secrets import SecretsAPI

        self.secrets = SecretsAPI(self)
        logger.info(f"OTS client initialized for {self.base_url}")

    @classmethod
    def from_vault(cls, vault: "CredentialVault", **kwargs: Any) -> "OtsClient":
        """Build a client from the credential stored in ``vault``.

        Raises:
            ConfigurationError: If nothing is stored
            AuthenticationError: If the stored configuration has no API key
        """
        credential = vault.load()
        if credential is None:
            raise ConfigurationError("No API configuration found")
        return cls(credential, **kwargs)

    @property
    def auth_header(self) -> str:
        return self._auth_header

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def request(self, method: str, path: str, json_body: Any = None) -> httpx.Response:
        """Send an authenticated request, mapping transport failures.

        Returns the response whatever its status; see ``parse``.

        Raises:
            ConfigurationError: If the client has been closed
            InvalidInputError: If ``path`` does not form a valid URL
            NetworkError, RequestTimeoutError: If no response arrives
        """
        if self._transport.is_closed:
            raise ConfigurationError("Client is closed")
        url = self.url_for(path)
        logger.debug(f"{method} {path}")
        try:
            response = await self._transport.send(
                method,
                url,
                headers={"Authorization": self._auth_header},
                json=json_body,
            )
        except httpx.InvalidURL as e:
            raise InvalidInputError(f"Invalid request URL: {e}") from e
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out: {e!r}")
            raise RequestTimeoutError() from e
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e!r}")
            raise NetworkError(f"Network error: {e}") from e
        logger.debug(f"{method} {path} -> {response.status_code}")
        return response

    def parse(self, response: httpx.Response, model: type[ModelT], **extra: Any) -> ModelT:
        """Turn a response into ``model`` or raise the matching error.

        ``extra`` fills fields the server may leave out of the body.
        """
        data = self._json(response)
        if not isinstance(data, dict):
            raise SerializationError(f"Expected a JSON object, got {type(data).__name__}")
        try:
            return model.model_validate({**extra, **data})
        except ValidationError as e:
            raise SerializationError(f"Unexpected response format: {e.error_count()} invalid field(s)") from e

    def parse_list(self, response: httpx.Response, model: type[ModelT]) -> list[ModelT]:
        """Like ``parse`` for endpoints that return a JSON array of objects."""
        data = self._json(response)
        if not isinstance(data, list):
            raise SerializationError(f"Expected a JSON array, got {type(data).__name__}")
        try:
            return [model.model_validate(item) for item in data]
        except ValidationError as e:
            raise SerializationError(f"Unexpected response format: {e.error_count()} invalid field(s)") from e

    def _json(self, response: httpx.Response) -> Any:
        if not response.is_success:
            raise self._error_from(response)
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SerializationError(f"Response is not valid JSON: {e}") from e

    @staticmethod
    def _error_from(response: httpx.Response) -> OtsError:
        body = response.text
        server_message = None
        try:
            data = response.json()
            if isinstance(data, dict):
                server_message = data.get("message") or data.get("error")
        except ValueError:
            pass
        error = error_for_status(response.status_code, body=body, server_message=server_message)
        logger.info(f"HTTP {response.status_code} mapped to {error.code}")
        return error

    async def test_connection(self) -> bool:
        """Check that the service is reachable.

        Returns:
            True for any 2xx from the status endpoint, False otherwise

        Raises:
            NetworkError, RequestTimeoutError: If no response arrives
        """
        response = await self.request("GET", "/api/v2/status")
        ok = response.is_success
        logger.info(f"Connection test for {self.base_url}: {'ok' if ok else response.status_code}")
        return ok

    async def close(self):
        """Close the HTTP client connection"""
        await self._transport.aclose()

    async def __aenter__(self) -> "OtsClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


async def with_deadline(awaitable: Awaitable[T], seconds: float) -> T:
    """Await ``awaitable`` under an external deadline.

    Expiry is reported as ``RequestTimeoutError``, same as a transport timeout.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as e:
        raise RequestTimeoutError() from e
