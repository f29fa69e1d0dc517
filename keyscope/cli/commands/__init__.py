"""CLI command modules and the state they share."""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from keyscope.auth.context import CommandContext
from keyscope.auth.credentials import ScopeStore, get_config_path, load_store, locked_store
from keyscope.config import env_api_host, env_dashboard_host, env_verify_tls
from keyscope.exceptions import KeyscopeError

from ..constants import EXIT_FAILURE, LOGGER_NAME

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)

Committer = Callable[[Callable[[ScopeStore], None]], ScopeStore]


@dataclass
class CliState:
    """Global options collected by the root callback."""

    config_path: Path | None = None
    api_host: str | None = None
    dashboard_host: str | None = None
    verify_tls: bool | None = None
    debug: bool = False
    silent: bool = False
    interactive: bool | None = None

    def resolved_config_path(self) -> Path:
        return self.config_path or get_config_path()

    def is_interactive(self) -> bool:
        if self.interactive is not None:
            return self.interactive
        return sys.stdin.isatty()

    def info(self, message: str) -> None:
        if not self.silent:
            console.print(message)

    def warn(self, message: str) -> None:
        err_console.print(f"[yellow]{escape(message)}[/yellow]")

    def build_context(self, store: ScopeStore, committer: Committer | None = None) -> CommandContext:
        verify_tls = self.verify_tls if self.verify_tls is not None else env_verify_tls()
        return CommandContext(
            store=store,
            api_host=self.api_host or env_api_host(),
            dashboard_host=self.dashboard_host or env_dashboard_host(),
            verify_tls=verify_tls,
            committer=committer,
        )


def get_state(ctx: typer.Context) -> CliState:
    state = ctx.find_root().obj
    if not isinstance(state, CliState):
        state = CliState()
        ctx.find_root().obj = state
    return state


def configure_logging(debug: bool) -> None:
    """Route the keyscope loggers through rich; DEBUG with --debug, WARNING otherwise."""
    root = logging.getLogger(LOGGER_NAME)
    root.handlers = [RichHandler(console=err_console, show_path=debug, rich_tracebacks=debug)]
    root.setLevel(logging.DEBUG if debug else logging.WARNING)
    root.propagate = False


def default_scope_cwd() -> str:
    return os.getcwd()


def locked_committer(path: Path) -> Committer:
    """Commit changes by re-reading the store under its lock and saving it."""

    def commit(change: Callable[[ScopeStore], None]) -> ScopeStore:
        with locked_store(path) as store:
            change(store)
        return store

    return commit


@contextmanager
def command_context(state: CliState, *, mutating: bool = True) -> Iterator[CommandContext]:
    """Load the store and report keyscope errors as exit 1.

    A ``mutating`` command holds the store lock throughout and saves on a
    clean exit. Otherwise the store is read unlocked and any change goes
    through ``CommandContext.commit``, which takes the lock only to save.
    """
    path = state.resolved_config_path()
    with handle_errors():
        if mutating:
            with locked_store(path) as store:
                yield state.build_context(store)
        else:
            yield state.build_context(load_store(path), committer=locked_committer(path))


@contextmanager
def handle_errors() -> Iterator[None]:
    try:
        yield
    except KeyscopeError as e:
        logger.debug("Command failed", exc_info=True)
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_FAILURE) from e
