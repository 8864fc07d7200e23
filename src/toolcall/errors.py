"""Exception taxonomy shared by the dispatcher and built-in commands."""

from __future__ import annotations


class HelpRequested(Exception):
    """Raised to short-circuit a command and print help text (exit code 0)."""

    def __init__(self, help_text: str) -> None:
        super().__init__(help_text)
        self.help_text = help_text


class GracefulError(RuntimeError):
    """Expected failure shown to the user without a traceback unless verbose."""

    def __init__(self, message: str, *, verbose_message: str | None = None) -> None:
        super().__init__(message)
        self.verbose_message = verbose_message


class CommandParsingError(GracefulError):
    def __init__(self, message: str, *, help_text: str = "") -> None:
        super().__init__(message)
        self.help_text = help_text


class CommandNotFoundError(GracefulError):
    def __init__(self, command: str) -> None:
        super().__init__(
            f"Could not execute because the specified command or file was not found: {command}"
        )
        self.command = command


class ToolUpdateError(GracefulError):
    pass


__all__ = [
    "CommandNotFoundError",
    "CommandParsingError",
    "GracefulError",
    "HelpRequested",
    "ToolUpdateError",
]
