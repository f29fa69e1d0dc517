"""Synchronous HTTP client for the keyscope auth API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ._http import build_headers, handle_response, parse_model
from .auth.constants import (
    AUTHORIZE_ENDPOINT,
    GENERATE_CODE_ENDPOINT,
    REVOKE_TOKEN_ENDPOINT,
    ROLL_TOKEN_ENDPOINT,
)
from .auth.models import (
    AuthCodeResponse,
    AuthTokenResponse,
    RollTokenResponse,
    parse_auth_token_response,
)
from .config import DEFAULT_API_HOST, DEFAULT_TIMEOUT_SECONDS, sanitize_base_url
from .exceptions import TransportError

logger = logging.getLogger(__name__)


def _user_agent() -> str:
    from keyscope import __version__

    return f"keyscope-cli/{__version__}"


class AuthAPIClient:
    """Client for the auth code, roll and revoke endpoints.

    Example:
        >>> from keyscope import AuthAPIClient
        >>> with AuthAPIClient("https://api.keyscope.dev") as client:
        ...     code = client.generate_auth_code("laptop", "linux", "amd64")
        ...     print(code.auth_url)
    """

    def __init__(
        self,
        api_host: str = DEFAULT_API_HOST,
        *,
        verify_tls: bool = True,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_host: API base URL (default: https://api.keyscope.dev).
            verify_tls: Verify the server's TLS certificate.
            timeout: Request timeout in seconds (default: 30).
            transport: Optional httpx transport, mainly for tests.
        """
        self.api_host = sanitize_base_url(api_host)
        self.verify_tls = verify_tls
        self._client = httpx.Client(timeout=timeout, verify=verify_tls, transport=transport)

    def _post(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.api_host}{endpoint}"
        logger.debug("POST %s", url)
        try:
            response = self._client.post(url, headers=build_headers(_user_agent()), json=payload)
        except httpx.HTTPError as e:
            raise TransportError(f"Unable to reach {self.api_host}: {e}") from e
        return handle_response(response)

    def generate_auth_code(self, hostname: str, os_name: str, arch: str) -> AuthCodeResponse:
        """Request a one-time auth code, tagged with the host identity for auditing."""
        data = self._post(GENERATE_CODE_ENDPOINT, {"hostname": hostname, "os": os_name, "arch": arch})
        return parse_model(AuthCodeResponse, data, GENERATE_CODE_ENDPOINT)

    def get_auth_token(self, code: str) -> AuthTokenResponse:
        """Exchange an auth code for a token.

        Raises:
            AuthPendingError: The code exists but has not been authorized yet.
        """
        data = self._post(AUTHORIZE_ENDPOINT, {"code": code})
        return parse_auth_token_response(data, AUTHORIZE_ENDPOINT)

    def roll_auth_token(self, token: str) -> RollTokenResponse:
        """Issue a replacement for ``token`` and revoke the original."""
        data = self._post(ROLL_TOKEN_ENDPOINT, {"token": token})
        return parse_model(RollTokenResponse, data, ROLL_TOKEN_ENDPOINT)

    def revoke_auth_token(self, token: str) -> None:
        self._post(REVOKE_TOKEN_ENDPOINT, {"token": token})

    def close(self) -> None:
        """Release the underlying HTTP client resources."""
        self._client.close()

    def __enter__(self) -> AuthAPIClient:
        return self

    def __exit__(self, exc_type: type | None, exc: BaseException | None, traceback: Any) -> None:
        self.close()
