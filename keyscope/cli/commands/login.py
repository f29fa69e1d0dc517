"""Login commands for the keyscope CLI."""

from __future__ import annotations

import typer
from rich.markup import escape

from keyscope.auth.credentials import canonicalize_scope
from keyscope.auth.lifecycle import get_auth_status, login, revoke_token, roll_token
from keyscope.auth.types import SessionState
from keyscope.config import DEFAULT_SCOPE

from ..auth.terminal import ConsolePrompter, TerminalPresenter
from ..constants import EXIT_DENIED, EXIT_FAILURE, PROMPT_REVOKE
from . import command_context, console, default_scope_cwd, err_console, get_state

app = typer.Typer(help="Authenticate to the secrets API")

SCOPE_HELP = "the directory to scope your token to"


@app.callback(invoke_without_command=True)
def login_command(
    ctx: typer.Context,
    scope: str = typer.Option(DEFAULT_SCOPE, "--scope", help=SCOPE_HELP),
    overwrite: bool = typer.Option(False, "--overwrite", help="overwrite existing token if one exists"),
    no_copy: bool = typer.Option(False, "--no-copy", help="do not copy the auth code to the clipboard"),
    yes: bool = typer.Option(False, "--yes", "-y", help="open browser without confirmation"),
) -> None:
    """Authenticate this machine and store a token for the scope.

    The config file is locked only while the new token is saved, so other
    keyscope commands can run while the browser login is pending.
    """
    if ctx.invoked_subcommand is not None:
        return

    state = get_state(ctx)
    interactive = state.is_interactive()
    presenter = TerminalPresenter(
        console,
        err_console,
        copy_code=not no_copy,
        assume_yes=yes,
        silent=state.silent,
        interactive=interactive,
    )

    with command_context(state, mutating=False) as command:
        result = login(
            command,
            scope,
            cwd=default_scope_cwd(),
            overwrite=overwrite,
            interactive=interactive,
            prompter=ConsolePrompter(console, err_console),
            presenter=presenter,
        )

    if result.aborted:
        if result.error:
            err_console.print(f"[red]{escape(result.error)}[/red]")
            raise typer.Exit(EXIT_FAILURE)
        state.info("Exiting")
        return

    if result.state is SessionState.DENIED:
        state.info("")
        err_console.print(escape(result.error or "Login denied"))
        raise typer.Exit(EXIT_DENIED)

    if not result.success:
        err_console.print(f"[red]Error:[/red] {escape(result.error or 'Login failed')}")
        raise typer.Exit(EXIT_FAILURE)

    state.info("")
    state.info(f"Welcome, {result.name}")


@app.command("roll")
def roll(
    ctx: typer.Context,
    scope: str = typer.Option(DEFAULT_SCOPE, "--scope", help=SCOPE_HELP),
    no_update_config: bool = typer.Option(
        False, "--no-update-config", help="do not update the rolled token in the config file"
    ),
) -> None:
    """Roll your auth token.

    This will generate a new token and revoke the old one.
    Your saved configuration will be updated.
    """
    state = get_state(ctx)
    with command_context(state) as command:
        roll_token(command, scope, update_config=not no_update_config)
    state.info("Auth token has been rolled")


def revoke(
    ctx: typer.Context,
    scope: str = typer.Option(DEFAULT_SCOPE, "--scope", help=SCOPE_HELP),
    no_update_config: bool = typer.Option(
        False,
        "--no-update-config",
        help="do not remove the revoked token and Enclave configuration from the config file",
    ),
    no_update_enclave_config: bool = typer.Option(
        False, "--no-update-enclave-config", help="do not remove the Enclave configuration from the config file"
    ),
    force: bool = typer.Option(
        False, "--force", help="remove the token from the config file even if the API rejects the revocation"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="proceed without confirmation"),
) -> None:
    """Revoke your auth token.

    Your auth token will be immediately revoked.
    This is an alias of the "logout" command.
    """
    state = get_state(ctx)
    if not yes and state.is_interactive():
        if not typer.confirm(PROMPT_REVOKE.format(scope=canonicalize_scope(scope)), default=True):
            state.info("Exiting")
            return

    with command_context(state) as command:
        result = revoke_token(
            command,
            scope,
            update_config=not no_update_config,
            update_enclave_config=not no_update_enclave_config,
            force_local=force,
        )

    if result.remote_error:
        err_console.print(f"[red]Error:[/red] {escape(result.remote_error)}")
        if result.removed_scopes:
            state.info(f"Removed token from {len(result.removed_scopes)} scope(s)")
        raise typer.Exit(EXIT_FAILURE)

    state.info("Auth token has been revoked")


app.command("revoke")(revoke)


@app.command("status")
def status(
    ctx: typer.Context,
    scope: str = typer.Option(DEFAULT_SCOPE, "--scope", help=SCOPE_HELP),
) -> None:
    """Show the token stored for a scope."""
    state = get_state(ctx)
    with command_context(state, mutating=False) as command:
        auth = get_auth_status(command, scope)

    if not auth.authenticated:
        console.print(f"[yellow]Not authenticated for {auth.scope}.[/yellow]")
        console.print("Run [bold]keyscope login[/bold] to authenticate.")
        raise typer.Exit(EXIT_FAILURE)

    console.print("[green]Authenticated[/green]")
    console.print(f"  Scope: {auth.scope}")
    console.print(f"  Token: {auth.masked_token}")
    if auth.api_host:
        console.print(f"  API Host: {auth.api_host}")
    if auth.dashboard_host:
        console.print(f"  Dashboard: {auth.dashboard_host}")
    if auth.config_path:
        console.print(f"  Config: {auth.config_path}")
