"""Test configuration for keyscope tests."""

from __future__ import annotations

from typing import Any, Sequence

import pytest

from keyscope.auth.context import CommandContext
from keyscope.auth.credentials import ScopeStore
from keyscope.auth.models import AuthCodeResponse, AuthTokenGranted, RollTokenResponse
from keyscope.exceptions import AuthPendingError


class FakeClock:
    """Monotonic clock whose sleep() advances time instead of blocking."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeAuthAPI:
    """In-memory stand-in for AuthAPIClient.

    ``poll_results`` is consumed one item per poll: an exception instance is
    raised, a zero-argument callable is called for its result, anything else
    is returned as-is. Once exhausted, polls keep answering "pending".
    """

    def __init__(
        self,
        *,
        code: str = "ABCD-1234",
        auth_url: str = "https://dashboard.keyscope.dev/auth/cli?code=ABCD-1234",
        poll_results: Sequence[Any] = (),
        new_token: str = "tok_rolled",
        generate_error: Exception | None = None,
        roll_error: Exception | None = None,
        revoke_error: Exception | None = None,
    ) -> None:
        self.code = code
        self.auth_url = auth_url
        self.poll_results = list(poll_results)
        self.new_token = new_token
        self.generate_error = generate_error
        self.roll_error = roll_error
        self.revoke_error = revoke_error

        self.generate_calls: list[tuple[str, str, str]] = []
        self.poll_codes: list[str] = []
        self.rolled: list[str] = []
        self.revoked: list[str] = []
        self.close_calls = 0

    def generate_auth_code(self, hostname: str, os_name: str, arch: str) -> AuthCodeResponse:
        self.generate_calls.append((hostname, os_name, arch))
        if self.generate_error is not None:
            raise self.generate_error
        return AuthCodeResponse(code=self.code, auth_url=self.auth_url)

    def get_auth_token(self, code: str):
        self.poll_codes.append(code)
        if not self.poll_results:
            raise pending()
        result = self.poll_results.pop(0)
        if isinstance(result, BaseException):
            raise result
        if callable(result):
            return result()
        return result

    def roll_auth_token(self, token: str) -> RollTokenResponse:
        self.rolled.append(token)
        if self.roll_error is not None:
            raise self.roll_error
        return RollTokenResponse(token=self.new_token)

    def revoke_auth_token(self, token: str) -> None:
        self.revoked.append(token)
        if self.revoke_error is not None:
            raise self.revoke_error

    def close(self) -> None:
        self.close_calls += 1


class FakePrompter:
    def __init__(self, *, confirm: bool = True, select_index: int = 0) -> None:
        self.confirm_answer = confirm
        self.select_index = select_index
        self.confirms: list[str] = []
        self.selects: list[list[str]] = []
        self.warnings: list[str] = []
        self.infos: list[str] = []

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def info(self, message: str) -> None:
        self.infos.append(message)

    def confirm(self, message: str, default: bool) -> bool:
        self.confirms.append(message)
        return self.confirm_answer

    def select(self, message: str, options: Sequence[str], default: str) -> str:
        self.selects.append(list(options))
        return options[self.select_index]


def pending() -> AuthPendingError:
    return AuthPendingError(message="Authorization pending", status_code=409)


def granted(token: str = "tok_123", name: str = "Alice") -> AuthTokenGranted:
    return AuthTokenGranted(token=token, name=name, dashboard_url="https://dashboard.keyscope.dev")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_api():
    return FakeAuthAPI


@pytest.fixture
def make_prompter():
    return FakePrompter


@pytest.fixture
def pending_error():
    return pending


@pytest.fixture
def grant():
    return granted


@pytest.fixture
def make_context():
    """Build a CommandContext whose client factory hands out ``api`` and records hosts."""

    def _make(api: FakeAuthAPI, store: ScopeStore | None = None, **overrides: Any) -> CommandContext:
        ctx = CommandContext(store=store if store is not None else ScopeStore(), **overrides)
        ctx.opened = []  # type: ignore[attr-defined]

        def factory(api_host: str, verify_tls: bool) -> FakeAuthAPI:
            ctx.opened.append((api_host, verify_tls))  # type: ignore[attr-defined]
            return api

        ctx.client_factory = factory
        return ctx

    return _make


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    """Point the store at a temp file and clear keyscope env overrides."""
    path = tmp_path / ".keyscope" / "config.json"
    monkeypatch.setenv("KEYSCOPE_CONFIG_FILE", str(path))
    for name in ("KEYSCOPE_API_HOST", "KEYSCOPE_DASHBOARD_HOST", "KEYSCOPE_VERIFY_TLS"):
        monkeypatch.delenv(name, raising=False)
    return path
