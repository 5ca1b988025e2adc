"""Session lifecycle states.

The monitor never stores state between ticks. Each tick takes one
Observation of the filesystem and classify() maps it to a SessionState
with a single ordered match, so the exit priority lives in one place:
- EXIT_REQUESTED: a continue file exists
- TIMED_OUT: the watchdog flag exists
- DAEMON_EXITED: the upterm socket is gone
- READY: none of the above; the status query decides what happens next
"""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations


class SessionState(StrEnum):
    """Session lifecycle states.

    STARTING is only held by the launcher. READY means the session is being
    monitored. Every other state is terminal and ends the monitor loop.
    """

    STARTING = "starting"
    READY = "ready"
    EXIT_REQUESTED = "exit_requested"
    TIMED_OUT = "timed_out"
    DAEMON_EXITED = "daemon_exited"
    CONNECTION_LOST = "connection_lost"

    @property
    def is_terminal(self) -> bool:
        """Return True if the monitor loop stops in this state."""
        return self not in (SessionState.STARTING, SessionState.READY)


@dataclass(frozen=True, slots=True)
class Observation:
    """Filesystem facts gathered at the start of one monitor tick.

    Attributes:
        continue_file: The continue file that exists, if any.
        timeout_flagged: Whether the watchdog flag file exists.
        socket: The upterm admin socket, if present.
    """

    continue_file: Path | None
    timeout_flagged: bool
    socket: Path | None


def classify(observation: Observation) -> SessionState:
    """Map one observation to a session state, in fixed priority order."""
    match observation:
        case Observation(continue_file=Path()):
            return SessionState.EXIT_REQUESTED
        case Observation(timeout_flagged=True):
            return SessionState.TIMED_OUT
        case Observation(socket=None):
            return SessionState.DAEMON_EXITED
        case _:
            return SessionState.READY
