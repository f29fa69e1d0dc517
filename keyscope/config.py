"""Configuration helpers for keyscope."""

from __future__ import annotations

import os

DEFAULT_API_HOST = "https://api.keyscope.dev"
DEFAULT_DASHBOARD_HOST = "https://dashboard.keyscope.dev"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_SCOPE = "/"

ENV_API_HOST = "KEYSCOPE_API_HOST"
ENV_DASHBOARD_HOST = "KEYSCOPE_DASHBOARD_HOST"
ENV_VERIFY_TLS = "KEYSCOPE_VERIFY_TLS"
ENV_CONFIG_FILE = "KEYSCOPE_CONFIG_FILE"

_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def sanitize_base_url(url: str) -> str:
    """Ensure the base URL never ends with a trailing slash."""

    return url.rstrip("/")


def parse_bool(value: str | None, default: bool) -> bool:
    """Interpret an env/config string as a boolean, falling back to ``default``."""
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in _FALSE_VALUES


def env_api_host() -> str | None:
    return os.environ.get(ENV_API_HOST) or None


def env_dashboard_host() -> str | None:
    return os.environ.get(ENV_DASHBOARD_HOST) or None


def env_verify_tls() -> bool | None:
    value = os.environ.get(ENV_VERIFY_TLS)
    if value is None or not value.strip():
        return None
    return parse_bool(value, True)
