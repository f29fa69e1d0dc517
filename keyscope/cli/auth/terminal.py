"""Terminal side effects of the login flow: prompts, clipboard and browser."""

from __future__ import annotations

import logging
import webbrowser
from typing import Callable, Sequence

import pyperclip
import typer
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from keyscope.exceptions import KeyscopeError

from ..constants import PROMPT_OPEN_BROWSER

logger = logging.getLogger(__name__)


class ConsolePrompter:
    """Asks scope-conflict questions on the terminal."""

    def __init__(self, console: Console, err_console: Console) -> None:
        self.console = console
        self.err_console = err_console

    def warn(self, message: str) -> None:
        self.err_console.print(f"[yellow]{escape(message)}[/yellow]")

    def info(self, message: str) -> None:
        self.console.print(escape(message))

    def confirm(self, message: str, default: bool) -> bool:
        return typer.confirm(message, default=default)

    def select(self, message: str, options: Sequence[str], default: str) -> str:
        for number, option in enumerate(options, start=1):
            self.console.print(f"  {number}. {escape(option)}")
        choices = [str(n) for n in range(1, len(options) + 1)]
        answer = Prompt.ask(
            message,
            choices=choices,
            default=str(options.index(default) + 1),
            console=self.console,
        )
        return options[int(answer) - 1]


def _open_url(url: str) -> bool:
    try:
        return webbrowser.open(url)
    except webbrowser.Error as e:
        logger.debug("Unable to launch a browser: %s", e)
        return False


class TerminalPresenter:
    """Shows the auth code, copies it to the clipboard and offers to open the browser.

    Clipboard failures only warn. A browser that fails to launch falls back
    to printing the URL, except in silent mode where nobody would see it.
    """

    def __init__(
        self,
        console: Console,
        err_console: Console,
        *,
        copy_code: bool = True,
        assume_yes: bool = False,
        silent: bool = False,
        interactive: bool = True,
        copy: Callable[[str], None] = pyperclip.copy,
        open_url: Callable[[str], bool] = _open_url,
        confirm: Callable[..., bool] = typer.confirm,
    ) -> None:
        self.console = console
        self.err_console = err_console
        self.copy_code = copy_code
        self.assume_yes = assume_yes
        self.silent = silent
        self.interactive = interactive
        self.copy = copy
        self.open_url = open_url
        self.confirm = confirm

    def _info(self, message: str) -> None:
        if not self.silent:
            self.console.print(message)

    def _should_open_browser(self) -> bool:
        if self.assume_yes or self.silent:
            return True
        if not self.interactive:
            return False
        return self.confirm(PROMPT_OPEN_BROWSER, default=True)

    def present(self, code: str, auth_url: str) -> None:
        if self.copy_code:
            try:
                self.copy(code)
            except pyperclip.PyperclipException as e:
                logger.debug("Clipboard copy failed: %s", e)
                self.err_console.print("[yellow]Unable to copy to clipboard[/yellow]")

        open_browser = self._should_open_browser()
        print_url = not open_browser
        if open_browser and not self.open_url(auth_url):
            if self.silent:
                raise KeyscopeError("Unable to launch a browser")
            print_url = True
            self._info("Unable to launch a browser")

        if print_url:
            self._info(f"Complete authorization at {escape(auth_url)}")
        self._info(f"Your auth code is [green]{escape(code)}[/green]")
        self._info("Waiting...")
