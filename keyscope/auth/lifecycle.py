"""Login, roll and revoke operations over the scoped token store.

All functions return typed results and never print directly (callers handle
presentation). Fatal conditions raise ``KeyscopeError`` subclasses; nothing is
written to the store on those paths.
"""

from __future__ import annotations

import logging
from typing import Any

from ..exceptions import KeyscopeError, PreconditionError
from .constants import ERROR_NO_TOKEN
from .context import ApiSettings, CommandContext
from .credentials import ScopeStore, canonicalize_scope
from .flow import AuthSession, CodePresenter
from .scope import Prompter, resolve_scope
from .types import (
    Abort,
    AuthStatus,
    LoginResult,
    PendingRevocation,
    RevokeResult,
    RollResult,
    SessionState,
    TokenRecord,
)

logger = logging.getLogger(__name__)


def _require_token(store: ScopeStore, scope: str) -> TokenRecord:
    record = store.get(scope)
    if record is None or not record.has_token:
        raise PreconditionError(ERROR_NO_TOKEN)
    return record


def _revoke_superseded(ctx: CommandContext, previous: PendingRevocation, settings: ApiSettings) -> bool:
    """Revoke a token replaced by a new login. Failures are logged, never raised."""
    record = previous.record
    api_host = record.api_host or settings.api_host
    verify_tls = record.verify_tls if record.api_host else settings.verify_tls

    logger.debug("Revoking previous token")
    client = ctx.open_client(api_host, verify_tls)
    try:
        client.revoke_auth_token(record.token)
    except KeyscopeError as e:
        logger.debug("Failed to revoke token: %s", e)
        return False
    finally:
        client.close()
    logger.debug("Token successfully revoked")
    return True


def login(
    ctx: CommandContext,
    requested_scope: str,
    *,
    cwd: str,
    overwrite: bool = False,
    interactive: bool = True,
    prompter: Prompter | None = None,
    presenter: CodePresenter | None = None,
    **session_options: Any,
) -> LoginResult:
    """Authorize this machine and store the new token for the resolved scope.

    ``session_options`` are forwarded to ``AuthSession`` (clock, sleep,
    cancel, timeout, poll_interval). The new entry is written through
    ``ctx.commit``; a ``StoreError`` from it propagates before any token is
    revoked.
    """
    previous: PendingRevocation | None = None
    previous_record = ctx.store.get(requested_scope)
    if previous_record is not None and previous_record.has_token:
        previous = PendingRevocation(scope=canonicalize_scope(requested_scope), record=previous_record)

    resolution = resolve_scope(
        requested_scope,
        cwd,
        previous,
        overwrite=overwrite,
        interactive=interactive,
        prompter=prompter,
    )
    if isinstance(resolution, Abort):
        return LoginResult(state=SessionState.INIT, aborted=True, error=resolution.reason)

    final_scope = canonicalize_scope(resolution.scope)
    settings = ctx.settings_for(final_scope)

    client = ctx.open_client(settings.api_host, settings.verify_tls)
    try:
        session = AuthSession(client, presenter=presenter, **session_options)
        outcome = session.run()
    finally:
        client.close()

    if outcome.state is not SessionState.COMPLETED or outcome.grant is None:
        return LoginResult(state=outcome.state, scope=final_scope, error=outcome.message)

    grant = outcome.grant

    def save_grant(store: ScopeStore) -> None:
        current = store.get(final_scope)
        store.set(
            final_scope,
            TokenRecord(
                token=grant.token,
                api_host=settings.api_host,
                dashboard_host=grant.dashboard_url,
                verify_tls=settings.verify_tls,
                enclave_project=current.enclave_project if current else None,
                enclave_config=current.enclave_config if current else None,
            ),
        )

    # the new token must be saved before the one it replaces is revoked
    ctx.commit(save_grant)
    record = ctx.store.get(final_scope)

    revoked = False
    if previous is not None and previous.scope == final_scope:
        revoked = _revoke_superseded(ctx, previous, settings)

    return LoginResult(
        state=SessionState.COMPLETED,
        scope=final_scope,
        name=grant.name,
        record=record,
        revoked_previous=revoked,
    )


def roll_token(ctx: CommandContext, scope: str, *, update_config: bool = True) -> RollResult:
    """Replace the scope's token with a newly issued one.

    Every store entry holding the old token is updated, not only ``scope``.
    """
    record = _require_token(ctx.store, scope)
    old_token = record.token
    settings = ctx.settings_for(scope)

    client = ctx.open_client(settings.api_host, settings.verify_tls)
    try:
        new_token = client.roll_auth_token(old_token).token
    finally:
        client.close()

    updated: list[str] = []
    if update_config:
        for entry_scope in ctx.store.scopes_with_token(old_token):
            ctx.store.update(entry_scope, token=new_token)
            updated.append(entry_scope)
        logger.debug("Rolled token in %d scope(s)", len(updated))

    return RollResult(scope=canonicalize_scope(scope), updated_scopes=updated)


def _remove_token(store: ScopeStore, token: str, update_enclave_config: bool) -> list[str]:
    removed: list[str] = []
    for entry_scope in store.scopes_with_token(token):
        record = store.get(entry_scope)
        if record is not None and not update_enclave_config and record.has_enclave_settings:
            store.set(
                entry_scope,
                TokenRecord(enclave_project=record.enclave_project, enclave_config=record.enclave_config),
            )
        else:
            store.delete(entry_scope)
        removed.append(entry_scope)
    return removed


def revoke_token(
    ctx: CommandContext,
    scope: str,
    *,
    update_config: bool = True,
    update_enclave_config: bool = True,
    force_local: bool = False,
) -> RevokeResult:
    """Revoke the scope's token remotely and drop every local reference to it.

    With ``force_local`` a remote failure (e.g. the token was already revoked)
    is reported in the result instead of raised, and local cleanup still runs.
    """
    record = _require_token(ctx.store, scope)
    token = record.token
    settings = ctx.settings_for(scope)

    remote_error: str | None = None
    client = ctx.open_client(settings.api_host, settings.verify_tls)
    try:
        client.revoke_auth_token(token)
    except KeyscopeError as e:
        if not force_local:
            raise
        remote_error = str(e)
        logger.debug("Remote revoke failed, cleaning up local entries anyway: %s", e)
    finally:
        client.close()

    removed = _remove_token(ctx.store, token, update_enclave_config) if update_config else []
    return RevokeResult(
        scope=canonicalize_scope(scope),
        revoked=remote_error is None,
        removed_scopes=removed,
        remote_error=remote_error,
    )


def mask_token(token: str) -> str:
    if len(token) >= 16:
        return token[:6] + "..." + token[-4:]
    if len(token) >= 8:
        return token[:4] + "..."
    return "***"


def get_auth_status(ctx: CommandContext, scope: str) -> AuthStatus:
    """Report the token stored for exactly ``scope``."""
    canonical = canonicalize_scope(scope)
    config_path = str(ctx.store.path) if ctx.store.path else None
    record = ctx.store.get(canonical)
    if record is None or not record.has_token:
        return AuthStatus(authenticated=False, scope=canonical, config_path=config_path)
    return AuthStatus(
        authenticated=True,
        scope=canonical,
        masked_token=mask_token(record.token),
        api_host=record.api_host or None,
        dashboard_host=record.dashboard_host or None,
        config_path=config_path,
    )
