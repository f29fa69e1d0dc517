"""Constants for the keyscope CLI."""

EXIT_FAILURE = 1
EXIT_DENIED = 2

LOGGER_NAME = "keyscope"

PROMPT_OPEN_BROWSER = "Open the authorization page in your browser?"
PROMPT_REVOKE = "Revoke the auth token for {scope}?"
