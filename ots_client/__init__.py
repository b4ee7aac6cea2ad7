"""
OneTimeSecret client - share secrets that can be read only once

Async API client for the OneTimeSecret v2 API, plus a credential vault that
keeps the API key in the platform keychain.
"""

__version__ = "0.1.0"

from .client import OtsClient, with_deadline
from .config import ClientSettings, get_settings
from .errors import (
    ApiResponseError,
    AuthenticationError,
    ConfigurationError,
    ErrorKind,
    ErrorResponse,
    InvalidInputError,
    NetworkError,
    NotFoundError,
    OtsError,
    PermissionDeniedError,
    RateLimitedError,
    RequestTimeoutError,
    SerializationError,
    ServiceUnavailableError,
    StorageError,
)
from .models import (
    CreateResult,
    Credential,
    RetrieveResult,
    SecretMetadata,
    SecretState,
    build_credential,
)
from .storage import KeyringStore, MemoryStore, SecretStore
from .vault import CredentialVault, load_persisted_credential

__all__ = [
    "OtsClient",
    "with_deadline",
    "ClientSettings",
    "get_settings",
    "Credential",
    "build_credential",
    "CreateResult",
    "RetrieveResult",
    "SecretMetadata",
    "SecretState",
    "CredentialVault",
    "load_persisted_credential",
    "SecretStore",
    "KeyringStore",
    "MemoryStore",
    "ErrorKind",
    "ErrorResponse",
    "OtsError",
    "ApiResponseError",
    "AuthenticationError",
    "ConfigurationError",
    "InvalidInputError",
    "NetworkError",
    "NotFoundError",
    "PermissionDeniedError",
    "RateLimitedError",
    "RequestTimeoutError",
    "SerializationError",
    "ServiceUnavailableError",
    "StorageError",
]
