"""Constants for keyscope authentication and token storage."""

from __future__ import annotations

# Auth code exchange: the deadline is a hard ceiling and is never overridable
AUTH_TIMEOUT_SECONDS = 300
POLL_INTERVAL_SECONDS = 2.0

# Remote endpoints
GENERATE_CODE_ENDPOINT = "/v3/auth/cli/generate"
AUTHORIZE_ENDPOINT = "/v3/auth/cli/authorize"
ROLL_TOKEN_ENDPOINT = "/v3/auth/token/roll"
REVOKE_TOKEN_ENDPOINT = "/v3/auth/token/revoke"

# Credential storage
CONFIG_DIR = ".keyscope"
CONFIG_FILE = "config.json"
LOCK_SUFFIX = ".lock"
SCOPED_KEY = "scoped"
LOCK_TIMEOUT_SECONDS = 10.0

# Error messages
ERROR_AUTH_TIMEOUT = "Login timed out after {minutes} minutes"
ERROR_LOGIN_CANCELLED = "Login cancelled"
ERROR_NO_TOKEN = "You must provide a token. Run 'keyscope login' first."
ERROR_CONFLICT_UNATTENDED = (
    "This scope has already been authorized from a previous login. "
    "Re-run with --overwrite to replace it."
)
