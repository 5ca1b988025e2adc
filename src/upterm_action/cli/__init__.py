"""Command-line entry points for upterm-action."""

from ._app import app, create_app, main
from ._run import resolve_inputs, run
from ._shared import ExitCode, exit_with_error

__all__ = [
    "ExitCode",
    "app",
    "create_app",
    "exit_with_error",
    "main",
    "resolve_inputs",
    "run",
]
