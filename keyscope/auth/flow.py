"""Auth code login flow for keyscope.

The CLI asks the API for a one-time code, shows it to the user, and polls
until the code is authorized in the browser, denied, or the deadline passes:

    INIT -> CODE_ISSUED -> POLLING -> COMPLETED | DENIED | TIMED_OUT | FAILED

Polling avoids opening a local listening port. The session never prints
directly; presentation is delegated to an injected ``CodePresenter`` and time
to injected ``clock``/``sleep`` callables so the loop can run on a fake clock.
"""

from __future__ import annotations

import logging
import platform
import socket
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from ..exceptions import AuthPendingError, KeyscopeError
from .constants import AUTH_TIMEOUT_SECONDS, ERROR_AUTH_TIMEOUT, ERROR_LOGIN_CANCELLED, POLL_INTERVAL_SECONDS
from .models import AuthCodeResponse, AuthTokenDenied, AuthTokenGranted, AuthTokenResponse
from .types import SessionState

logger = logging.getLogger(__name__)


class AuthCodeAPI(Protocol):
    def generate_auth_code(self, hostname: str, os_name: str, arch: str) -> AuthCodeResponse: ...

    def get_auth_token(self, code: str) -> AuthTokenResponse: ...


class CodePresenter(Protocol):
    """Shows the auth code to the user (display, clipboard, browser).

    Raising ``KeyscopeError`` fails the session; anything softer should be
    handled inside the presenter.
    """

    def present(self, code: str, auth_url: str) -> None: ...


@dataclass(frozen=True)
class HostIdentity:
    hostname: str
    os_name: str
    arch: str

    @classmethod
    def current(cls) -> HostIdentity:
        return cls(
            hostname=socket.gethostname(),
            os_name=platform.system().lower(),
            arch=platform.machine().lower(),
        )


@dataclass
class SessionOutcome:
    """Terminal result of an AuthSession."""

    state: SessionState
    grant: AuthTokenGranted | None = None
    message: str | None = None
    error: KeyscopeError | None = None


class AuthSession:
    """One auth code exchange. Not reusable once it reaches a terminal state."""

    def __init__(
        self,
        api: AuthCodeAPI,
        *,
        host: HostIdentity | None = None,
        presenter: CodePresenter | None = None,
        timeout: float = AUTH_TIMEOUT_SECONDS,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], None] | None = None,
        cancel: Callable[[], bool] | None = None,
    ) -> None:
        self.api = api
        self.host = host or HostIdentity.current()
        self.presenter = presenter
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.clock = clock or time.monotonic
        self.sleep = sleep or time.sleep
        self.cancel = cancel

        self.state = SessionState.INIT
        self.history: list[SessionState] = [SessionState.INIT]
        self.code: str | None = None
        self.auth_url: str | None = None
        self.deadline: float | None = None
        self.attempts = 0

    def _transition(self, state: SessionState) -> None:
        if self.state.terminal:
            raise RuntimeError(f"AuthSession already finished in state {self.state.value}")
        logger.debug("Auth session %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def _finish(
        self,
        state: SessionState,
        *,
        grant: AuthTokenGranted | None = None,
        message: str | None = None,
        error: KeyscopeError | None = None,
    ) -> SessionOutcome:
        self._transition(state)
        return SessionOutcome(state=state, grant=grant, message=message, error=error)

    def _expired(self) -> bool:
        return self.deadline is not None and self.clock() > self.deadline

    def _timed_out(self) -> SessionOutcome:
        minutes = int(self.timeout // 60)
        return self._finish(SessionState.TIMED_OUT, message=ERROR_AUTH_TIMEOUT.format(minutes=minutes))

    def run(self) -> SessionOutcome:
        """Drive the session to a terminal state."""
        if self.state is not SessionState.INIT:
            raise RuntimeError("AuthSession.run() may only be called once")

        try:
            issued = self.api.generate_auth_code(self.host.hostname, self.host.os_name, self.host.arch)
        except KeyscopeError as e:
            return self._finish(SessionState.FAILED, message=str(e), error=e)

        self.code = issued.code
        self.auth_url = issued.auth_url
        # the deadline is measured from code issuance and cannot be disabled
        self.deadline = self.clock() + self.timeout
        self._transition(SessionState.CODE_ISSUED)

        if self.presenter is not None:
            try:
                self.presenter.present(issued.code, issued.auth_url)
            except KeyscopeError as e:
                return self._finish(SessionState.FAILED, message=str(e), error=e)

        self._transition(SessionState.POLLING)
        return self._poll()

    def _poll(self) -> SessionOutcome:
        assert self.code is not None
        while True:
            if self.cancel is not None and self.cancel():
                return self._finish(SessionState.FAILED, message=ERROR_LOGIN_CANCELLED)
            if self._expired():
                return self._timed_out()

            self.attempts += 1
            try:
                response = self.api.get_auth_token(self.code)
            except AuthPendingError:
                self.sleep(self.poll_interval)
                continue
            except KeyscopeError as e:
                return self._finish(SessionState.FAILED, message=str(e), error=e)

            # a grant that arrives after the deadline is still a timeout
            if self._expired():
                return self._timed_out()

            if isinstance(response, AuthTokenDenied):
                return self._finish(SessionState.DENIED, message=response.error)
            return self._finish(SessionState.COMPLETED, grant=response)
