"""Typed response schemas for the auth endpoints."""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict

from .._http import parse_model


class _Response(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class AuthCodeResponse(_Response):
    code: str
    auth_url: str


class AuthTokenGranted(_Response):
    token: str
    name: str
    dashboard_url: str


class AuthTokenDenied(_Response):
    """Application-level denial, e.g. the user rejected the request in the browser."""

    error: str


class RollTokenResponse(_Response):
    token: str


AuthTokenResponse = Union[AuthTokenGranted, AuthTokenDenied]


def parse_auth_token_response(data: dict[str, Any], endpoint: str) -> AuthTokenResponse:
    """Decode the authorize endpoint body into a grant or a denial."""
    if "error" in data:
        return AuthTokenDenied(error=str(data["error"]))
    return parse_model(AuthTokenGranted, data, endpoint)
