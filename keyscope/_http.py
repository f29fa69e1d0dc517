"""Shared HTTP request utilities for the API client."""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .exceptions import APIError, AuthenticationError, AuthPendingError, UnexpectedResponseError

ModelT = TypeVar("ModelT", bound=BaseModel)


def build_headers(user_agent: str) -> dict[str, str]:
    """Build request headers shared by every endpoint."""
    return {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "User-Agent": user_agent,
    }


def extract_error_message(response: httpx.Response) -> str:
    """Pull the server-provided message out of an error body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return response.text or "API call failed"

    if isinstance(body, dict):
        messages = body.get("messages")
        if isinstance(messages, list) and messages:
            return "\n".join(str(m) for m in messages)
        if body.get("error"):
            return str(body["error"])
    return response.text or "API call failed"


def handle_response(response: httpx.Response) -> dict[str, Any]:
    """Process HTTP response, raising appropriate errors for failures."""
    if response.status_code == 401:
        raise AuthenticationError(
            message=extract_error_message(response),
            status_code=401,
            response=response,
        )

    if response.status_code == 409:
        raise AuthPendingError(
            message=extract_error_message(response),
            status_code=409,
            response=response,
        )

    if response.status_code >= 400:
        raise APIError(
            message=extract_error_message(response),
            status_code=response.status_code,
            response=response,
        )

    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError as e:
        raise UnexpectedResponseError(str(response.url), "body is not valid JSON") from e
    if not isinstance(data, dict):
        raise UnexpectedResponseError(str(response.url), f"expected object, got {type(data).__name__}")
    return data


def parse_model(model: type[ModelT], data: dict[str, Any], endpoint: str) -> ModelT:
    """Validate a decoded body against ``model``."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise UnexpectedResponseError(endpoint, str(e)) from e
