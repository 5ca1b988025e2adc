"""Exit codes and error reporting shared by the CLI commands."""

from enum import IntEnum
from typing import TYPE_CHECKING, Never

from rich.markup import escape

if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "ExitCode",
    "exit_with_error",
    "get_error_console",
]


class ExitCode(IntEnum):
    """Exit codes for the upterm-action CLI."""

    SUCCESS = 0
    FAILURE = 1
    VALIDATION_ERROR = 2


def get_error_console() -> "Console":  # noqa: UP037
    """Get a Rich console configured for error output to stderr."""
    from rich.console import Console

    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.FAILURE,
    *,
    console: "Console | None" = None,  # noqa: UP037
) -> Never:
    """Print `Error: <message>` and terminate the command.

    Args:
        message: Text to report; rich markup in it is escaped.
        code: Process exit code.
        console: Console to print on; stderr when omitted.

    Raises:
        SystemExit: With `code`, always.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
    raise SystemExit(code)
