"""Main entry point for the keyscope CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from .commands import CliState, configure_logging, login

app = typer.Typer(
    name="keyscope",
    help="keyscope CLI - Manage scoped credentials for the secrets API",
    no_args_is_help=True,
)

app.add_typer(login.app, name="login")
app.command("logout", help='Revoke your auth token. Alias of "login revoke".')(login.revoke)


def _version_callback(value: bool) -> None:
    """Handle --version and exit early."""
    if value:
        from keyscope import __version__

        typer.echo(f"keyscope {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    configuration: Optional[Path] = typer.Option(
        None, "--configuration", help="config file", envvar="KEYSCOPE_CONFIG_FILE"
    ),
    api_host: Optional[str] = typer.Option(None, "--api-host", help="The host address for the API"),
    dashboard_host: Optional[str] = typer.Option(None, "--dashboard-host", help="The host address for the dashboard"),
    no_verify_tls: bool = typer.Option(False, "--no-verify-tls", help="don't verify the validity of TLS certificates"),
    debug: bool = typer.Option(False, "--debug", help="output additional information"),
    silent: bool = typer.Option(False, "--silent", help="disable output of info messages"),
    interactive: Optional[bool] = typer.Option(
        None,
        "--interactive/--no-interactive",
        help="allow prompts (default: only when stdin is a terminal)",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the CLI version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """keyscope CLI root callback."""
    _ = version
    configure_logging(debug)
    ctx.obj = CliState(
        config_path=configuration.expanduser() if configuration else None,
        api_host=api_host,
        dashboard_host=dashboard_host,
        verify_tls=False if no_verify_tls else None,
        debug=debug,
        silent=silent,
        interactive=interactive,
    )


@app.command()
def version() -> None:
    """Show the CLI version."""
    from keyscope import __version__

    typer.echo(f"keyscope {__version__}")


if __name__ == "__main__":
    app()
