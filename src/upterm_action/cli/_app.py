# pyright: reportUnusedFunction=false
"""The command-line interface for upterm-action."""

from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from upterm_action.config import LogFormat, LogLevel, validate
from upterm_action.exceptions import ValidationError

from ._run import resolve_inputs, run
from ._shared import ExitCode, exit_with_error

HELP = "Debug a GitHub Actions runner over SSH with upterm and tmux."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="upterm-action",
        help=HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.default
    def _start(
        *,
        server: Annotated[
            str | None,
            Parameter(name="--server", help="upterm relay server address"),
        ] = None,
        wait_timeout_minutes: Annotated[
            str | None,
            Parameter(
                name="--wait-timeout-minutes",
                help="Shut down if no client connects within this many minutes",
            ),
        ] = None,
        log_level: Annotated[
            LogLevel | None, Parameter(name="--log-level", help="Log level")
        ] = None,
        log_format: Annotated[
            LogFormat | None,
            Parameter(name="--log-format", help="Console log format"),
        ] = None,
        log_file: Annotated[
            str | None,
            Parameter(name="--log-file", help="Also write JSON log lines here"),
        ] = None,
    ) -> None:
        """Start an upterm session and wait until it ends.

        Inputs are read from the INPUT_* variables set by the Actions runner;
        flags override them.

        Args:
            server: Overrides the upterm-server input.
            wait_timeout_minutes: Overrides the wait-timeout-minutes input.
            log_level: Overrides logging.level.
            log_format: Overrides logging.format.
            log_file: Overrides logging.file.
        """
        code = run(
            overrides={
                "logging.level": log_level,
                "logging.format": log_format,
                "logging.file": log_file,
            },
            server=server,
            wait_timeout_minutes=wait_timeout_minutes,
        )
        raise SystemExit(code)

    @app.command(name="validate")
    def _validate(
        *,
        server: Annotated[
            str | None,
            Parameter(name="--server", help="upterm relay server address"),
        ] = None,
        wait_timeout_minutes: Annotated[
            str | None,
            Parameter(name="--wait-timeout-minutes", help="Timeout in minutes"),
        ] = None,
    ) -> None:
        """Validate the action inputs and print the session configuration

        Nothing is installed, written or launched.

        Args:
            server: Overrides the upterm-server input.
            wait_timeout_minutes: Overrides the wait-timeout-minutes input.
        """
        inputs = resolve_inputs(
            server=server, wait_timeout_minutes=wait_timeout_minutes
        )
        try:
            config = validate(inputs)
        except ValidationError as e:
            exit_with_error(str(e), ExitCode.VALIDATION_ERROR, console=error_console)

        console.print_json(config.model_dump_json())
        raise SystemExit(ExitCode.SUCCESS)

    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `upterm-action` CLI."""
    app = create_app()
    app()


if __name__ == "__main__":
    main()
