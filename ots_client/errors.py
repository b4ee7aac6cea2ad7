"""Error taxonomy for the OneTimeSecret client.

Every failure raised by the vault or the API client is one of the classes
below. Each carries a stable ``kind`` tag so a presentation layer can branch
without string matching, and converts to a serializable ``ErrorResponse``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ErrorKind(str, Enum):
    """Machine-readable error codes."""

    API = "API_ERROR"
    AUTHENTICATION = "AUTH_ERROR"
    CONFIGURATION = "CONFIG_ERROR"
    NOT_FOUND = "NOT_FOUND"
    NETWORK = "NETWORK_ERROR"
    STORAGE = "STORAGE_ERROR"
    SERIALIZATION = "SERIALIZATION_ERROR"
    INVALID_INPUT = "VALIDATION_ERROR"
    PERMISSION_DENIED = "PERMISSION_ERROR"
    RATE_LIMITED = "RATE_LIMIT_EXCEEDED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TIMEOUT = "REQUEST_TIMEOUT"


class ErrorResponse(BaseModel):
    """Wire-safe error representation handed to callers."""

    error: str
    code: ErrorKind


class OtsError(Exception):
    """Base class for all client errors."""

    kind: ErrorKind = ErrorKind.API
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return self.kind.value

    def to_response(self) -> ErrorResponse:
        """Convert to the serializable ``{"error", "code"}`` form."""
        return ErrorResponse(error=self.message, code=self.kind)


class ApiResponseError(OtsError):
    """Raised for unexpected HTTP statuses the taxonomy has no slot for."""

    kind = ErrorKind.API

    def __init__(self, message: str | None = None, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthenticationError(OtsError):
    """Raised when the server rejects the credentials or no API key is configured."""

    kind = ErrorKind.AUTHENTICATION
    default_message = "Invalid credentials. Please check your API key."


class ConfigurationError(OtsError):
    """Raised when stored or supplied configuration is unusable."""

    kind = ErrorKind.CONFIGURATION
    default_message = "Invalid configuration"


class NotFoundError(OtsError):
    """Raised when a secret or metadata record does not exist (or was already burned)."""

    kind = ErrorKind.NOT_FOUND
    default_message = "Secret not found"


class NetworkError(OtsError):
    """Raised for DNS, connect, TLS and other transport-level failures."""

    kind = ErrorKind.NETWORK
    default_message = "Connection failed. Please check your internet connection."


class StorageError(OtsError):
    """Raised when the secure credential store fails."""

    kind = ErrorKind.STORAGE
    default_message = "Secure storage error"


class SerializationError(OtsError):
    """Raised when a payload cannot be decoded into the expected shape."""

    kind = ErrorKind.SERIALIZATION
    default_message = "Unexpected response format"


class InvalidInputError(OtsError):
    """Raised for rejected input, locally or by the server (HTTP 400)."""

    kind = ErrorKind.INVALID_INPUT
    default_message = "Invalid input"


class PermissionDeniedError(OtsError):
    kind = ErrorKind.PERMISSION_DENIED
    default_message = "Operation not permitted"


class RateLimitedError(OtsError):
    kind = ErrorKind.RATE_LIMITED
    default_message = "Rate limit exceeded. Please wait before trying again."


class ServiceUnavailableError(OtsError):
    kind = ErrorKind.SERVICE_UNAVAILABLE
    default_message = "Service temporarily unavailable. Please try again later."


class RequestTimeoutError(OtsError):
    kind = ErrorKind.TIMEOUT
    default_message = "Request timeout. Please check your connection and try again."


def error_for_status(status_code: int, body: str = "", server_message: str | None = None) -> OtsError:
    """Map a non-2xx HTTP status to its error class.

    The mapping depends only on the status code; ``server_message`` and
    ``body`` are carried along as detail where the variant has room for it.
    """
    detail = server_message or body or None
    if status_code == 400:
        return InvalidInputError(detail)
    if status_code == 401:
        return AuthenticationError()
    if status_code == 403:
        return PermissionDeniedError(detail)
    if status_code == 404:
        return NotFoundError()
    if status_code == 429:
        return RateLimitedError()
    if 500 <= status_code <= 599:
        return ServiceUnavailableError()
    return ApiResponseError(f"HTTP {status_code}: {body}", status_code=status_code, body=body)
