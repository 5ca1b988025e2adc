"""Session monitoring loop."""

import shlex
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, final

from upterm_action.exceptions import CommandError, MonitoringError

from ._models import Observation, SessionState, classify

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from upterm_action.runtime import RuntimePaths
    from upterm_action.utils import ShellRunner

MONITOR_POLL_INTERVAL_SECONDS = 5.0

# Error texts upterm reports when its admin socket is gone or refuses
# connections. Matched case-insensitively; specific to upterm.
CONNECTION_LOST_SIGNATURES: tuple[str, ...] = (
    "connection refused",
    "no such file or directory",
)

TIMEOUT_MESSAGE = (
    "Upterm session timed out - no client connected within the specified "
    "wait-timeout-minutes"
)
TIMEOUT_CLEANUP_MESSAGE = (
    "The session was automatically shut down to conserve resources; "
    "this is not an error"
)


def is_connection_lost(error_text: str) -> bool:
    """Return True if a status query error means the daemon went away."""
    lowered = error_text.lower()
    return any(signature in lowered for signature in CONNECTION_LOST_SIGNATURES)


@final
class SessionMonitor:
    """Polls the session until it reaches a terminal state.

    Each tick takes a fresh Observation; nothing is carried between ticks.
    """

    __slots__ = ("_logger", "_paths", "_poll_interval", "_shell", "_sleep")

    def __init__(
        self,
        paths: "RuntimePaths",  # noqa: UP037
        shell: "ShellRunner",  # noqa: UP037
        logger: "FilteringBoundLogger",  # noqa: UP037
        *,
        poll_interval: float = MONITOR_POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._paths = paths
        self._shell = shell
        self._logger = logger
        self._poll_interval = poll_interval
        self._sleep = sleep

    def observe(self) -> Observation:
        """Gather the filesystem facts for one tick."""
        return Observation(
            continue_file=self._paths.find_continue_file(),
            timeout_flagged=self._paths.timeout_flagged(),
            socket=self._paths.find_socket(),
        )

    def run(self) -> SessionState:
        """Poll until the session ends.

        Returns:
            The terminal state that ended the session.

        Raises:
            MonitoringError: If the status query fails in an unrecognized way.
        """
        while True:
            state = self.tick()
            if state.is_terminal:
                return state
            self._sleep(self._poll_interval)

    def tick(self) -> SessionState:
        """Run one monitoring step and return the resulting state."""
        observation = self.observe()
        state = classify(observation)
        if state is SessionState.READY and observation.socket is not None:
            return self._query_status(observation.socket)

        match state:
            case SessionState.EXIT_REQUESTED:
                self._logger.info(
                    "Exiting debugging session because "
                    f"'{observation.continue_file}' file was created"
                )
            case SessionState.TIMED_OUT:
                self._report_timeout()
            case SessionState.DAEMON_EXITED:
                self._logger.info("Exiting debugging session: 'upterm' quit")
            case _:
                pass
        return state

    def _report_timeout(self) -> None:
        self._logger.info(TIMEOUT_MESSAGE)
        self._logger.info(TIMEOUT_CLEANUP_MESSAGE)

    def _query_status(self, socket: "Path") -> SessionState:  # noqa: UP037
        command = f"upterm session current --admin-socket {shlex.quote(str(socket))}"
        try:
            output = self._shell.run(command)
        except CommandError as e:
            # The watchdog may have killed upterm while the query ran
            if self._paths.timeout_flagged():
                self._report_timeout()
                return SessionState.TIMED_OUT

            if is_connection_lost(f"{e}\n{e.stderr}"):
                self._logger.error("Upterm session ended unexpectedly")
                self._logger.error(f"Connection error: {e}")
                self._logger.info(
                    "The upterm process may have crashed or been terminated "
                    "externally"
                )
                return SessionState.CONNECTION_LOST

            msg = f"Failed to get upterm session status: {e}"
            raise MonitoringError(msg, cause=e) from e

        self._logger.info(output.rstrip("\n"))
        return SessionState.READY
