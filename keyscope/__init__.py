"""keyscope - scoped credential manager for a secrets-management API."""

from importlib.metadata import PackageNotFoundError, version

from .client import AuthAPIClient
from .exceptions import (
    APIError,
    AuthenticationError,
    AuthPendingError,
    KeyscopeError,
    PreconditionError,
    StoreError,
    TransportError,
    UnexpectedResponseError,
)

__all__ = [
    "AuthAPIClient",
    "KeyscopeError",
    "APIError",
    "AuthenticationError",
    "AuthPendingError",
    "PreconditionError",
    "StoreError",
    "TransportError",
    "UnexpectedResponseError",
]

try:
    __version__ = version("keyscope")
except PackageNotFoundError:
    __version__ = "0.1.0"
