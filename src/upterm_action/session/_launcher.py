"""Session launch, watchdog and readiness polling.

The outer tmux session (upterm-wrapper) runs `upterm host`, which in turn
runs the inner tmux session (upterm) that clients attach to. When upterm
quits, the outer session dies with it and the admin socket disappears,
which is how the monitor detects that the daemon exited.
"""

import shlex
import time
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, final

from tenacity import (
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from upterm_action.exceptions import (
    CommandError,
    ReadinessTimeoutError,
    SessionCreationError,
)
from upterm_action.utils import tail_file

from ._diagnostics import collect_diagnostics

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from upterm_action.config import SessionConfig
    from upterm_action.runtime import RuntimePaths
    from upterm_action.utils import ShellRunner

OUTER_SESSION = "upterm-wrapper"
INNER_SESSION = "upterm"
TERMINAL_WIDTH = 132
TERMINAL_HEIGHT = 43

READINESS_MAX_ATTEMPTS = 10
READINESS_POLL_INTERVAL_SECONDS = 1.0


def build_authorization_flags(principals: Iterable[str]) -> list[str]:
    """Return one `--github-user '<name>'` flag per unique principal.

    Names are single-quoted because the flag passes through two shell
    layers: the one running `tmux new` and the one tmux starts for upterm.
    Principals are validated to the GitHub login character set, so a name
    never contains a quote.
    """
    return [f"--github-user '{name}'" for name in dict.fromkeys(principals)]


def build_host_command(
    config: "SessionConfig",  # noqa: UP037
    paths: "RuntimePaths",  # noqa: UP037
) -> str:
    """Build the command line that starts upterm inside the outer session."""
    geometry = f"-x {TERMINAL_WIDTH} -y {TERMINAL_HEIGHT}"
    upterm = " ".join(
        [
            "upterm host --accept",
            f"--server {shlex.quote(config.server)}",
            *build_authorization_flags(config.principals),
            f"--force-command 'tmux attach -t {INNER_SESSION}'",
            f"-- tmux new -s {INNER_SESSION} {geometry}",
            f"2>>{shlex.quote(str(paths.error_log))}",
        ]
    )
    pipe = shlex.quote(f"cat >> {shlex.quote(str(paths.command_log))}")
    return (
        f"tmux new -d -s {OUTER_SESSION} {geometry} {shlex.quote(upterm)}"
        f" && tmux pipe-pane -t {OUTER_SESSION} -o {pipe}"
    )


def build_watchdog_command(minutes: int, timeout_flag: str) -> str:
    """Build the detached watchdog pipeline.

    After the timeout, the pipeline checks for an attached client and only
    if none is attached writes the flag file and kills the tmux server. The
    check and the kill run in one shell so no other process arbitrates
    between them. Output is discarded so the launching shell returns at once.
    """
    return (
        f"( sleep $(( {minutes} * 60 )); "
        "if ! pgrep -f '^tmux attach ' >/dev/null 2>&1; then "
        f"touch {shlex.quote(timeout_flag)}; tmux kill-server; "
        "fi ) >/dev/null 2>&1 & disown"
    )


@final
class SessionLauncher:
    """Starts the nested tmux/upterm sessions and waits for the admin socket."""

    __slots__ = (
        "_config",
        "_logger",
        "_max_attempts",
        "_paths",
        "_poll_interval",
        "_shell",
        "_sleep",
    )

    def __init__(  # noqa: PLR0913
        self,
        config: "SessionConfig",  # noqa: UP037
        paths: "RuntimePaths",  # noqa: UP037
        shell: "ShellRunner",  # noqa: UP037
        logger: "FilteringBoundLogger",  # noqa: UP037
        *,
        max_attempts: int = READINESS_MAX_ATTEMPTS,
        poll_interval: float = READINESS_POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._paths = paths
        self._shell = shell
        self._logger = logger
        self._max_attempts = max_attempts
        self._poll_interval = poll_interval
        self._sleep = sleep

    def start(self) -> None:
        """Launch the sessions and arm the watchdog if a timeout is configured.

        Raises:
            SessionCreationError: If tmux cannot be started, the window
                size cannot be set, or the watchdog cannot be launched.
        """
        self._logger.info(
            "Creating a new session. Connecting to upterm server "
            f"{self._config.server}"
        )
        try:
            _ = self._shell.run(build_host_command(self._config, self._paths))
            _ = self._shell.run(
                f"tmux set -t {OUTER_SESSION} window-size largest; "
                f"tmux set -t {INNER_SESSION} window-size largest"
            )
        except CommandError as e:
            error_log = self._read_error_log()
            msg = f"Failed to create upterm session: {e}"
            if error_log:
                msg = f"{msg}\n{error_log}"
            raise SessionCreationError(msg, cause=e, error_log=error_log) from e
        self._logger.debug("Created new session successfully")

        if self._config.wait_timeout_minutes is not None:
            self._arm_watchdog(self._config.wait_timeout_minutes)

    def _read_error_log(self) -> str | None:
        try:
            return tail_file(self._paths.error_log)
        except OSError as e:
            self._logger.debug(f"Could not read upterm error log: {e}")
            return None

    def _arm_watchdog(self, minutes: int) -> None:
        self._logger.info(
            f"wait-timeout-minutes set - will wait for {minutes} minutes "
            "for someone to connect, otherwise shut down"
        )
        command = build_watchdog_command(minutes, str(self._paths.timeout_flag))
        try:
            _ = self._shell.run(command)
        except CommandError as e:
            msg = f"Failed to setup timeout: {e}"
            raise SessionCreationError(msg, cause=e) from e

    def _socket_ready(self) -> bool:
        if self._paths.socket_exists():
            return True
        self._logger.info("Waiting for upterm to be ready...")
        return False

    def wait_until_ready(self) -> None:
        """Poll for the upterm admin socket.

        Raises:
            ReadinessTimeoutError: If the socket does not appear within the
                attempt budget. The message is the diagnostics report.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_fixed(self._poll_interval),
            retry=retry_if_result(lambda ready: not ready),
            sleep=self._sleep,
        )
        try:
            _ = retrying(self._socket_ready)
        except RetryError as e:
            diagnostics = collect_diagnostics(self._paths, self._shell)
            raise ReadinessTimeoutError(
                diagnostics, attempts=self._max_attempts, diagnostics=diagnostics
            ) from e
        self._logger.debug("upterm is ready")
