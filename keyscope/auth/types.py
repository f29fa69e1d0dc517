"""Typed values for authentication and token lifecycle operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class TokenRecord:
    """The credential and API endpoint metadata stored for one scope."""

    token: str = ""
    api_host: str = ""
    dashboard_host: str = ""
    verify_tls: bool = True
    enclave_project: str | None = None
    enclave_config: str | None = None

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    @property
    def has_enclave_settings(self) -> bool:
        return bool(self.enclave_project or self.enclave_config)


@dataclass(frozen=True)
class PendingRevocation:
    """A superseded login captured by value before the store is mutated."""

    scope: str
    record: TokenRecord


@dataclass(frozen=True)
class Proceed:
    scope: str


@dataclass(frozen=True)
class Abort:
    reason: str | None = None


Resolution = Proceed | Abort


class SessionState(str, Enum):
    INIT = "init"
    CODE_ISSUED = "code_issued"
    POLLING = "polling"
    COMPLETED = "completed"
    DENIED = "denied"
    TIMED_OUT = "timed_out"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {SessionState.COMPLETED, SessionState.DENIED, SessionState.TIMED_OUT, SessionState.FAILED}
)


@dataclass
class LoginResult:
    """Result of a login attempt."""

    state: SessionState
    scope: str | None = None
    name: str | None = None
    record: TokenRecord | None = None
    error: str | None = None
    aborted: bool = False
    revoked_previous: bool = False

    @property
    def success(self) -> bool:
        return self.state is SessionState.COMPLETED


@dataclass
class RollResult:
    """Result of rolling a token."""

    scope: str
    updated_scopes: list[str] = field(default_factory=list)


@dataclass
class RevokeResult:
    """Result of revoking a token."""

    scope: str
    revoked: bool
    removed_scopes: list[str] = field(default_factory=list)
    remote_error: str | None = None


@dataclass
class AuthStatus:
    """Current authentication status for a scope."""

    authenticated: bool
    scope: str
    masked_token: str | None = None
    api_host: str | None = None
    dashboard_host: str | None = None
    config_path: str | None = None
