"""Authentication and scoped token storage for keyscope.

Lightweight imports (credentials, scope resolution, types) are eager.
The session and lifecycle modules pull in the HTTP client and are loaded
lazily so that reading the store never imports httpx.
"""

from .credentials import ScopeStore, canonicalize_scope, load_store, locked_store, save_store
from .scope import resolve_scope
from .types import Abort, AuthStatus, LoginResult, Proceed, RevokeResult, RollResult, SessionState, TokenRecord

_LAZY = {
    "AuthSession": ".flow",
    "CommandContext": ".context",
    "get_auth_status": ".lifecycle",
    "login": ".lifecycle",
    "revoke_token": ".lifecycle",
    "roll_token": ".lifecycle",
}


def __getattr__(name: str):
    if name in _LAZY:
        from importlib import import_module

        return getattr(import_module(_LAZY[name], __name__), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "Abort",
    "AuthSession",
    "AuthStatus",
    "CommandContext",
    "LoginResult",
    "Proceed",
    "RevokeResult",
    "RollResult",
    "ScopeStore",
    "SessionState",
    "TokenRecord",
    "canonicalize_scope",
    "get_auth_status",
    "load_store",
    "locked_store",
    "login",
    "resolve_scope",
    "revoke_token",
    "roll_token",
    "save_store",
]
