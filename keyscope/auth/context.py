"""Per-command configuration passed explicitly to lifecycle operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from ..config import DEFAULT_API_HOST, DEFAULT_DASHBOARD_HOST
from .credentials import ScopeStore

if TYPE_CHECKING:
    from ..client import AuthAPIClient


def _default_client_factory(api_host: str, verify_tls: bool) -> AuthAPIClient:
    from ..client import AuthAPIClient

    return AuthAPIClient(api_host, verify_tls=verify_tls)


@dataclass(frozen=True)
class ApiSettings:
    api_host: str
    dashboard_host: str
    verify_tls: bool


@dataclass
class CommandContext:
    """The loaded store plus any API settings given on the command line or env.

    Precedence for each setting: explicit override > record stored for the
    scope > built-in default.
    """

    store: ScopeStore
    api_host: str | None = None
    dashboard_host: str | None = None
    verify_tls: bool | None = None
    client_factory: Callable[[str, bool], AuthAPIClient] = field(default=_default_client_factory)
    committer: Callable[[Callable[[ScopeStore], None]], ScopeStore] | None = None

    def settings_for(self, scope: str) -> ApiSettings:
        record = self.store.get(scope)
        api_host = self.api_host or (record.api_host if record else "") or DEFAULT_API_HOST
        dashboard_host = self.dashboard_host or (record.dashboard_host if record else "") or DEFAULT_DASHBOARD_HOST
        if self.verify_tls is not None:
            verify_tls = self.verify_tls
        else:
            verify_tls = record.verify_tls if record else True
        return ApiSettings(api_host=api_host, dashboard_host=dashboard_host, verify_tls=verify_tls)

    def open_client(self, api_host: str, verify_tls: bool) -> AuthAPIClient:
        return self.client_factory(api_host, verify_tls)

    def commit(self, change: Callable[[ScopeStore], None]) -> None:
        """Apply ``change`` and persist it before returning.

        A ``committer`` re-reads the store under its lock, applies the change
        and saves; the saved store replaces ``self.store``. Without one the
        change is applied to the store in memory.
        """
        if self.committer is None:
            change(self.store)
        else:
            self.store = self.committer(change)
