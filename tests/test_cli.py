"""Tests for CLI entrypoint behavior."""

from __future__ import annotations

import json
import os
from types import SimpleNamespace

import pytest
from filelock import FileLock
from typer.testing import CliRunner

from keyscope import __version__
from keyscope.auth import credentials, flow
from keyscope.auth.context import CommandContext
from keyscope.auth.credentials import ScopeStore, load_store, save_store
from keyscope.auth.models import AuthTokenDenied
from keyscope.auth.types import TokenRecord
from keyscope.cli.main import app
from keyscope.exceptions import APIError, StoreError

runner = CliRunner()


def test_root_version_option():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == f"keyscope {__version__}"


def test_version_subcommand():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == f"keyscope {__version__}"


def _record(token: str, **kwargs) -> TokenRecord:
    return TokenRecord(token=token, api_host="https://api.keyscope.dev", dashboard_host="https://dash", **kwargs)


class TestLoginCommands:
    @pytest.fixture(autouse=True)
    def _setup(self, config_path, tmp_path, monkeypatch, make_api):
        self.config_path = config_path
        self.project = os.path.realpath(tmp_path / "project")
        os.makedirs(self.project)
        monkeypatch.chdir(self.project)
        self.api = make_api()
        monkeypatch.setattr(CommandContext, "open_client", lambda ctx, api_host, verify_tls: self.api)

    def _seed(self, entries: dict[str, TokenRecord]) -> None:
        save_store(ScopeStore(entries), self.config_path)

    def _invoke(self, *args: str, interactive: bool = False, input: str | None = None):
        flag = "--interactive" if interactive else "--no-interactive"
        return runner.invoke(app, [flag, *args], input=input)

    def test_login_fresh_store(self, grant):
        self.api.poll_results = [grant("tok_123", "Alice")]

        result = self._invoke("login", "--scope", self.project, "--no-copy")

        assert result.exit_code == 0, result.output
        assert "Welcome, Alice" in result.output
        assert "Complete authorization at" in result.output
        scoped = json.loads(self.config_path.read_text())["scoped"]
        assert list(scoped) == [self.project]
        assert scoped[self.project]["token"] == "tok_123"
        assert "verify_tls" not in scoped[self.project]

    def test_login_no_verify_tls_is_persisted(self, grant):
        self.api.poll_results = [grant()]

        result = self._invoke("--no-verify-tls", "login", "--scope", self.project, "--no-copy")

        assert result.exit_code == 0, result.output
        assert load_store(self.config_path).get(self.project).verify_tls is False

    def test_login_conflict_unattended_requires_overwrite(self):
        self._seed({self.project: _record("old")})

        result = self._invoke("login", "--scope", self.project, "--no-copy")

        assert result.exit_code == 1
        assert "--overwrite" in result.output
        assert load_store(self.config_path).get(self.project).token == "old"
        assert self.api.generate_calls == []

    def test_login_conflict_declined(self):
        self._seed({self.project: _record("old")})

        result = self._invoke("login", "--scope", self.project, "--no-copy", interactive=True, input="n\n")

        assert result.exit_code == 0
        assert "Exiting" in result.output
        assert load_store(self.config_path).get(self.project).token == "old"

    def test_login_conflict_confirmed_revokes_previous(self, grant):
        self._seed({self.project: _record("old")})
        self.api.poll_results = [grant("new")]

        # overwrite? yes; open browser? no
        result = self._invoke("login", "--scope", self.project, "--no-copy", interactive=True, input="y\nn\n")

        assert result.exit_code == 0, result.output
        assert load_store(self.config_path).get(self.project).token == "new"
        assert self.api.revoked == ["old"]

    def test_login_overwrite_flag(self, grant):
        self._seed({self.project: _record("old")})
        self.api.poll_results = [grant("new")]

        result = self._invoke("login", "--scope", self.project, "--overwrite", "--no-copy")

        assert result.exit_code == 0, result.output
        assert load_store(self.config_path).get(self.project).token == "new"
        assert self.api.revoked == ["old"]

    def test_login_denied_exit_code(self):
        self.api.poll_results = [AuthTokenDenied(error="The login request was denied")]

        result = self._invoke("login", "--scope", self.project, "--no-copy")

        assert result.exit_code == 2
        assert "The login request was denied" in result.output
        assert not self.config_path.exists()

    def test_login_api_failure_exit_code(self):
        self.api.generate_error = APIError(message="Service unavailable", status_code=503)

        result = self._invoke("login", "--scope", self.project, "--no-copy")

        assert result.exit_code == 1
        assert "Service unavailable" in result.output

    def test_login_save_failure_keeps_previous_token(self, grant, monkeypatch):
        self._seed({self.project: _record("old")})
        self.api.poll_results = [grant("new")]

        def failing_save(store, path=None):
            raise StoreError("disk full")

        monkeypatch.setattr(credentials, "save_store", failing_save)

        result = self._invoke("login", "--scope", self.project, "--overwrite", "--no-copy")

        assert result.exit_code == 1
        assert "disk full" in result.output
        assert self.api.revoked == []
        assert load_store(self.config_path).get(self.project).token == "old"

    def test_login_timeout_exit_code(self, clock, monkeypatch):
        self._seed({self.project: _record("old")})
        monkeypatch.setattr(flow, "time", SimpleNamespace(monotonic=clock, sleep=clock.sleep))

        result = self._invoke("login", "--scope", self.project, "--overwrite", "--no-copy")

        assert result.exit_code == 1
        assert "Login timed out after 5 minutes" in result.output
        assert self.api.revoked == []
        assert load_store(self.config_path).get(self.project).token == "old"

    def test_login_does_not_hold_lock_while_polling(self, grant):
        self._seed({"/": _record("U")})
        lock_free_while_polling = []

        def poll():
            lock = FileLock(f"{self.config_path}.lock", timeout=0)
            with lock:
                lock_free_while_polling.append(True)
            return grant("new")

        self.api.poll_results = [poll]

        result = self._invoke("login", "--scope", self.project, "--no-copy")

        assert result.exit_code == 0, result.output
        assert lock_free_while_polling == [True]
        assert load_store(self.config_path).get(self.project).token == "new"

    def test_roll_updates_all_scopes(self):
        other = os.path.realpath(os.path.join(self.project, "..", "other"))
        self._seed({self.project: _record("T"), other: _record("T"), "/": _record("U")})
        self.api.new_token = "T2"

        result = self._invoke("login", "roll", "--scope", self.project)

        assert result.exit_code == 0, result.output
        assert "Auth token has been rolled" in result.output
        store = load_store(self.config_path)
        assert store.get(self.project).token == "T2"
        assert store.get(other).token == "T2"
        assert store.get("/").token == "U"

    def test_roll_without_token(self):
        result = self._invoke("login", "roll", "--scope", self.project)

        assert result.exit_code == 1
        assert "keyscope login" in result.output
        assert self.api.rolled == []

    def test_revoke(self):
        self._seed({self.project: _record("T"), "/": _record("U")})

        result = self._invoke("login", "revoke", "--scope", self.project, "-y")

        assert result.exit_code == 0, result.output
        store = load_store(self.config_path)
        assert store.get(self.project) is None
        assert store.get("/").token == "U"
        assert self.api.revoked == ["T"]

    def test_logout_alias(self):
        self._seed({self.project: _record("T")})

        result = self._invoke("logout", "--scope", self.project, "--yes")

        assert result.exit_code == 0, result.output
        assert len(load_store(self.config_path)) == 0

    def test_revoke_confirmation_declined(self):
        self._seed({self.project: _record("T")})

        result = self._invoke("logout", "--scope", self.project, interactive=True, input="n\n")

        assert result.exit_code == 0
        assert self.api.revoked == []
        assert load_store(self.config_path).get(self.project).token == "T"

    def test_revoke_remote_error_keeps_entry(self):
        self._seed({self.project: _record("T")})
        self.api.revoke_error = APIError(message="Token already revoked", status_code=400)

        result = self._invoke("logout", "--scope", self.project, "-y")

        assert result.exit_code == 1
        assert "Token already revoked" in result.output
        assert load_store(self.config_path).get(self.project).token == "T"

    def test_revoke_force_cleans_up_after_remote_error(self):
        self._seed({self.project: _record("T")})
        self.api.revoke_error = APIError(message="Token already revoked", status_code=400)

        result = self._invoke("logout", "--scope", self.project, "-y", "--force")

        assert result.exit_code == 1
        assert "Token already revoked" in result.output
        assert load_store(self.config_path).get(self.project) is None

    def test_status(self):
        self._seed({self.project: _record("abcdefghijklmnopqrst")})

        result = self._invoke("login", "status", "--scope", self.project)

        assert result.exit_code == 0
        assert "Authenticated" in result.output
        assert "abcdef...qrst" in result.output
        assert "abcdefghijklmnopqrst" not in result.output

    def test_status_not_authenticated(self):
        result = self._invoke("login", "status", "--scope", self.project)
        assert result.exit_code == 1
        assert "Not authenticated" in result.output

    def test_corrupt_store_is_fatal(self):
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text("{not json")

        result = self._invoke("login", "status", "--scope", self.project)

        assert result.exit_code == 1
        assert "corrupt" in result.output
