"""Decide how a new login interacts with an existing token for the same scope."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from ..config import DEFAULT_SCOPE
from .constants import ERROR_CONFLICT_UNATTENDED
from .credentials import canonicalize_scope
from .types import Abort, PendingRevocation, Proceed, Resolution

logger = logging.getLogger(__name__)

WARNING_SCOPE_AUTHORIZED = "This scope has already been authorized from a previous login."
WARNING_GLOBAL_AUTHORIZED = "You have already authorized this directory."


class Prompter(Protocol):
    """Interactive questions asked while resolving a scope conflict."""

    def warn(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def confirm(self, message: str, default: bool) -> bool: ...

    def select(self, message: str, options: Sequence[str], default: str) -> str: ...


def resolve_scope(
    requested_scope: str,
    cwd: str,
    existing: PendingRevocation | None,
    *,
    overwrite: bool,
    interactive: bool,
    prompter: Prompter | None = None,
) -> Resolution:
    """Return ``Proceed(scope)`` with the scope to log in to, or ``Abort``.

    ``existing`` is the previous login captured for ``requested_scope``. A
    conflict only exists when it holds a token for the same canonical scope
    and ``overwrite`` is not set. Unattended runs abort on conflict; the
    caller must pass ``overwrite``.
    """
    if existing is None or not existing.record.has_token or overwrite:
        return Proceed(requested_scope)

    new_scope = canonicalize_scope(requested_scope)
    if canonicalize_scope(existing.scope) != new_scope:
        return Proceed(requested_scope)

    current_dir = canonicalize_scope(cwd)

    if not interactive or prompter is None:
        logger.debug("Scope conflict on %s in non-interactive mode", new_scope)
        return Abort(ERROR_CONFLICT_UNATTENDED)

    if new_scope == current_dir:
        prompter.warn(WARNING_SCOPE_AUTHORIZED)
        if not prompter.confirm("Overwrite existing login:", False):
            return Abort()
        return Proceed(requested_scope)

    options = [
        f"Scope login to current directory ({current_dir})",
        f"Overwrite existing login ({new_scope})",
    ]
    warning = WARNING_SCOPE_AUTHORIZED
    message = "You may scope your new login to the current directory, or overwrite your existing login."

    if new_scope == DEFAULT_SCOPE:
        warning = WARNING_GLOBAL_AUTHORIZED
        message = "You may scope your new login to the current directory, or overwrite the global login."
        options[1] = f"Overwrite global login ({new_scope})"

    prompter.warn(warning)
    prompter.info(message)

    if prompter.select("Select an option:", options, options[0]) == options[0]:
        return Proceed(current_dir)
    return Proceed(requested_scope)
