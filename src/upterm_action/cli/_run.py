"""Top-level lifecycle entry point.

run() is the single catch boundary of the controller: every exception that
escapes the lifecycle becomes one `::error::` report and exit code 1.
Expected terminal states (continue file, watchdog timeout, daemon quit,
connection lost) end the run with exit code 0.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, TextIO

from upterm_action.config import (
    ActionInputs,
    Settings,
    load_settings,
    read_action_inputs,
)
from upterm_action.exceptions import SettingsError
from upterm_action.runtime import PlatformProfile, RuntimePaths
from upterm_action.session import run_session
from upterm_action.utils import ShellRunner, create_action_logger

from ._shared import ExitCode

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


def resolve_inputs(
    environ: Mapping[str, str] | None = None,
    *,
    server: str | None = None,
    wait_timeout_minutes: str | None = None,
) -> ActionInputs:
    """Read action inputs, letting CLI flags replace the environment values."""
    inputs = read_action_inputs(environ)
    update: dict[str, str] = {}
    if server is not None:
        update["upterm_server"] = server.strip()
    if wait_timeout_minutes is not None:
        update["wait_timeout_minutes"] = wait_timeout_minutes.strip()
    return inputs.model_copy(update=update) if update else inputs


def _create_logger(
    settings: Settings, stream: TextIO | None
) -> "FilteringBoundLogger":  # noqa: UP037
    return create_action_logger(
        level=settings.logging.level.value,
        log_format=settings.logging.format.value,
        log_file=settings.logging.file,
        stream=stream,
    )


def run(  # noqa: PLR0913
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, object] | None = None,
    server: str | None = None,
    wait_timeout_minutes: str | None = None,
    profile: PlatformProfile | None = None,
    stream: TextIO | None = None,
) -> ExitCode:
    """Run the whole session lifecycle and return the process exit code.

    Args:
        environ: Environment mapping; defaults to os.environ.
        overrides: Dotted-key settings overrides from the command line.
        server: Overrides the upterm-server input.
        wait_timeout_minutes: Overrides the wait-timeout-minutes input.
        profile: Host platform profile; detected when None.
        stream: Console stream for log output (defaults to stdout).

    Returns:
        ExitCode.SUCCESS when the session ended in an expected terminal
        state, ExitCode.FAILURE otherwise.
    """
    try:
        settings = load_settings(environ, overrides=overrides)
        logger = _create_logger(settings, stream)
    except SettingsError as e:
        create_action_logger(stream=stream).error(str(e))
        return ExitCode.FAILURE
    except OSError as e:
        msg = f"Cannot open log file {settings.logging.file}: {e}"
        create_action_logger(stream=stream).error(msg)
        return ExitCode.FAILURE

    try:
        inputs = resolve_inputs(
            environ, server=server, wait_timeout_minutes=wait_timeout_minutes
        )
        profile = profile or PlatformProfile.detect()
        paths = RuntimePaths.build(
            profile, home=inputs.home, workspace=inputs.workspace
        )
        shell = ShellRunner(
            env=paths.environment(),
            executable=profile.shell_executable,
            logger=logger,
            timeout=settings.timeouts.command_seconds,
        )
        state = run_session(
            inputs, profile=profile, paths=paths, shell=shell, logger=logger
        )
    except Exception as e:  # noqa: BLE001
        logger.debug(f"Session failed with {type(e).__name__}")
        logger.error(str(e))
        return ExitCode.FAILURE

    logger.debug(f"Session ended: {state}")
    return ExitCode.SUCCESS
