"""Terminal capabilities used by the login commands."""

from .terminal import ConsolePrompter, TerminalPresenter

__all__ = ["ConsolePrompter", "TerminalPresenter"]
