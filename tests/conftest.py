"""Pytest configuration and fixtures for ots_client tests"""

import json
from typing import Any

import httpx
import pytest

from ots_client import ClientSettings, Credential, CredentialVault, MemoryStore, OtsClient

ENDPOINT = "https://example.test"
IDENTITY = "user@example.test"
API_KEY = "abc"


class FakeOtsServer:
    """In-memory stand-in for the OneTimeSecret v2 API.

    Secrets are single-use: revealing one removes it, as the real service does.
    Every request is recorded in ``requests``.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.secrets: dict[str, dict[str, Any]] = {}
        self.metadata: dict[str, dict[str, Any]] = {}
        self._counter = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        body = json_body(request)

        if request.method == "GET" and path == "/api/v2/status":
            return httpx.Response(200, json={"status": "nominal"})
        if request.method == "GET" and path == "/api/v2/private/recent":
            return httpx.Response(200, json=[self._view(record) for record in reversed(self.metadata.values())])
        if request.method != "POST":
            return httpx.Response(405, text="Method not allowed")
        if path == "/api/v2/share":
            return self._share(body or {})
        if path.startswith("/api/v2/secret/"):
            return self._reveal(path.rsplit("/", 1)[1], body)
        if path.startswith("/api/v2/private/"):
            return self._private(path.rsplit("/", 1)[1], body)
        return httpx.Response(404, json={"message": "Unknown path"})

    def _share(self, body: dict[str, Any]) -> httpx.Response:
        self._counter += 1
        record = {
            "secret_key": f"k{self._counter}",
            "metadata_key": f"m{self._counter}",
            "ttl": body.get("ttl", 604800),
            "created": 1000,
            "updated": 1000,
            "state": "new",
            "value": body["secret"],
            "passphrase": body.get("passphrase"),
        }
        if "recipient" in body:
            record["recipient"] = [body["recipient"]]
        self.secrets[record["secret_key"]] = record
        self.metadata[record["metadata_key"]] = record
        keys = ("secret_key", "metadata_key", "ttl", "created", "updated", "recipient")
        return httpx.Response(200, json={k: record[k] for k in keys if k in record})

    def _reveal(self, secret_key: str, body: dict[str, Any] | None) -> httpx.Response:
        record = self.secrets.get(secret_key)
        if record is None:
            return httpx.Response(404, json={"message": "Unknown secret"})
        if record["passphrase"] and (body or {}).get("passphrase") != record["passphrase"]:
            return httpx.Response(400, json={"message": "Double check that passphrase"})
        del self.secrets[secret_key]
        record["state"] = "received"
        record["received"] = 2000
        return httpx.Response(
            200,
            json={"value": record["value"], "secret_key": secret_key, "metadata_key": record["metadata_key"]},
        )

    def _private(self, metadata_key: str, body: dict[str, Any] | None) -> httpx.Response:
        record = self.metadata.get(metadata_key)
        if record is None:
            return httpx.Response(404, json={"message": "Unknown metadata"})
        if body and body.get("action") == "burn":
            self.secrets.pop(record["secret_key"], None)
            record["state"] = "burned"
            record["updated"] = 3000
        return httpx.Response(200, json=self._view(record))

    @staticmethod
    def _view(record: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in record.items() if k not in ("value", "passphrase")}


def json_body(request: httpx.Request) -> Any:
    """Decoded JSON body of a recorded request, or None if it had no body"""
    if not request.content:
        return None
    return json.loads(request.content)


@pytest.fixture
def settings():
    """Settings isolated from the developer's .env file"""
    return ClientSettings(_env_file=None)


@pytest.fixture
def credential():
    return Credential(identity=IDENTITY, secret_key=API_KEY, endpoint=ENDPOINT)


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def vault(memory_store):
    return CredentialVault(memory_store)


@pytest.fixture
def ots_server():
    return FakeOtsServer()


@pytest.fixture
def make_client(credential, settings):
    """Factory for clients whose HTTP traffic goes to a handler function"""

    def _make(handler, *, cred: Credential | None = None, client_settings: ClientSettings | None = None):
        return OtsClient(
            cred or credential,
            settings=client_settings or settings,
            transport=httpx.MockTransport(handler),
        )

    return _make


@pytest.fixture
def client(make_client, ots_server):
    """Client wired to the fake server"""
    return make_client(ots_server)
