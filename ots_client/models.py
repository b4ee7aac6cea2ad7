"""Pydantic models for credentials and API payloads."""

from __future__ import annotations

from enum import Enum

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import InvalidInputError


class Credential(BaseModel):
    """API credentials: account identity, API key and service endpoint.

    ``secret_key`` is ``None`` only for a credential loaded from a vault that
    holds the configuration but no key yet. Such a credential cannot be used
    to build a client.
    """

    identity: str
    secret_key: str | None = Field(None, repr=False)
    endpoint: str

    class Config:
        frozen = True

    @field_validator("identity")
    @classmethod
    def _identity_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Username cannot be empty")
        return v

    @field_validator("secret_key")
    @classmethod
    def _secret_key_not_empty(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("API key cannot be empty")
        return v

    @field_validator("endpoint")
    @classmethod
    def _endpoint_absolute_url(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("API endpoint cannot be empty")
        try:
            url = httpx.URL(v)
        except httpx.InvalidURL as e:
            raise ValueError(f"Invalid URL: {e}") from e
        if not url.scheme or not url.host:
            raise ValueError(f"Invalid URL: {v} is not an absolute URL")
        return v

    @property
    def has_secret(self) -> bool:
        return self.secret_key is not None

    @property
    def masked_key(self) -> str | None:
        """Log-safe preview of the API key (e.g. ``"abcd..."``)."""
        if self.secret_key is None:
            return None
        return f"{self.secret_key[:4]}..."


def build_credential(
    identity: str,
    secret_key: str | None,
    endpoint: str,
    *,
    require_email: bool = False,
) -> Credential:
    """Construct a validated ``Credential``.

    Raises:
        InvalidInputError: If any field is empty, the endpoint is not an
            absolute URL, or ``require_email`` is set and the identity has no ``@``
    """
    try:
        credential = Credential(identity=identity, secret_key=secret_key, endpoint=endpoint)
    except ValidationError as e:
        raise InvalidInputError(_first_error(e)) from e
    check_credential(credential, require_email=require_email)
    return credential


def check_credential(credential: Credential, *, require_email: bool = False) -> None:
    """Apply policy checks on top of the model's own validation."""
    if require_email and "@" not in credential.identity:
        raise InvalidInputError("Username must be an email address")


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    msg = str(errors[0].get("msg", exc))
    # pydantic prefixes messages raised from validators
    return msg.removeprefix("Value error, ")


class SecretState(str, Enum):
    NEW = "new"
    RECEIVED = "received"
    BURNED = "burned"
    VIEWED = "viewed"


class CreateSecretRequest(BaseModel):
    """Body of ``POST /api/v2/share``. Absent optional fields are omitted."""

    secret: str
    passphrase: str | None = None
    ttl: int | None = None
    recipient: str | None = None

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


class CreateSecretResponse(BaseModel):
    """Body returned by ``POST /api/v2/share``."""

    secret_key: str
    metadata_key: str
    ttl: int | None = None
    created: int | None = None
    updated: int | None = None
    recipient: list[str] | None = None


class CreateResult(BaseModel):
    """Result of sharing a secret."""

    secret_key: str
    metadata_key: str
    link: str = Field(..., description="Shareable URL for the recipient")
    metadata_link: str = Field(..., description="Owner-facing status URL")
    ttl: int | None = None
    created: int | None = None
    updated: int | None = None
    recipient: list[str] | None = None


class RetrieveResult(BaseModel):
    """Result of revealing (and burning) a secret."""

    value: str
    secret_key: str
    metadata_key: str | None = None


class SecretMetadata(BaseModel):
    """Owner-facing status of a secret."""

    metadata_key: str
    secret_key: str | None = None
    ttl: int | None = None
    state: str
    created: int | None = None
    updated: int | None = None
    recipient: list[str] | None = None
    received: int | None = None
    custid: str | None = None
    metadata_ttl: int | None = None
    secret_ttl: int | None = None
    passphrase_required: bool | None = None

    @property
    def is_burned(self) -> bool:
        return self.state == SecretState.BURNED
