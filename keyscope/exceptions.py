"""Custom exceptions raised by keyscope."""

from __future__ import annotations

from typing import Any, Optional


class KeyscopeError(Exception):
    """Base exception for all keyscope specific failures."""


class APIError(KeyscopeError):
    """Raised when the remote API returns a non-successful response."""

    def __init__(self, message: str, status_code: int, response: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response

    def __str__(self) -> str:  # pragma: no cover - repr helper
        return f"{self.status_code}: {self.message}"


class AuthenticationError(APIError):
    """Raised when a token is rejected by the server."""


class AuthPendingError(APIError):
    """Raised when an auth code exists but has not been authorized yet (HTTP 409)."""


class TransportError(KeyscopeError):
    """Raised when the remote API cannot be reached."""


class UnexpectedResponseError(KeyscopeError):
    """Raised when a response body does not match the endpoint's schema."""

    def __init__(self, endpoint: str, detail: str):
        super().__init__(f"Unexpected API response from {endpoint}: {detail}")
        self.endpoint = endpoint
        self.detail = detail


class PreconditionError(KeyscopeError):
    """Raised when required local state is missing before a remote call."""


class StoreError(KeyscopeError):
    """Raised when the scoped token store cannot be read or written."""
