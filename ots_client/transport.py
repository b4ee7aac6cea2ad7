"""HTTPS transport shared by all requests of one client."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class Transport:
    """Thin wrapper over ``httpx.AsyncClient``.

    Only ``https`` endpoints are accepted. Redirects are not followed; httpx
    drops the ``Authorization`` header on cross-origin redirects in any case.
    No retries are performed.
    """

    def __init__(
        self,
        base_url: str,
        *,
        user_agent: str,
        timeout: float = 30.0,
        connect_timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            base_url: Service endpoint, e.g. https://onetimesecret.com
            user_agent: Client identification sent on every request
            timeout: Overall read/write/pool deadline in seconds
            connect_timeout: Connection establishment deadline in seconds
            transport: Custom httpx transport (tests use ``httpx.MockTransport``)

        Raises:
            ConfigurationError: If ``base_url`` is not an https URL
        """
        try:
            url = httpx.URL(base_url)
        except httpx.InvalidURL as e:
            raise ConfigurationError(f"Invalid API endpoint: {e}") from e
        if url.scheme != "https":
            raise ConfigurationError(f"API endpoint must use https, got: {base_url}")

        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            timeout=httpx.Timeout(timeout, connect=connect_timeout),
            follow_redirects=False,
            transport=transport,
        )

    async def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Send one request and return the raw response.

        httpx exceptions propagate unchanged; the caller maps them.
        """
        return await self._http.request(method, url, headers=headers, json=json)

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    async def aclose(self) -> None:
        await self._http.aclose()
