"""Runtime filesystem layout shared by the controller and its child processes.

All locations are derived once from the PlatformProfile and the caller's
home and workspace directories. Ambient runtime directories such as an
inherited XDG_RUNTIME_DIR are ignored; the values computed here are the
only ones injected into spawned processes.
"""

import tempfile
from dataclasses import dataclass
from pathlib import Path

from ._platform import PlatformProfile

DATA_DIR_NAME = "upterm-data"
TIMEOUT_FLAG_NAME = "timeout-flag"
CONTINUE_FILE_NAME = "continue"
POSIX_ROOT_CONTINUE_FILE = Path("/continue")
WINDOWS_ROOT_CONTINUE_FILE = Path("C:/msys64/continue")


def _base_temp_dir(profile: PlatformProfile) -> Path:
    if profile.is_windows:
        return Path(tempfile.gettempdir())
    return Path("/tmp")  # noqa: S108


@dataclass(frozen=True, slots=True)
class RuntimePaths:
    """Deterministic locations for sockets, flags, logs and SSH files.

    Attributes:
        data_dir: Root scratch directory owned by this run.
        runtime_dir: Directory exported as XDG_RUNTIME_DIR to child processes.
        state_dir: Directory exported as XDG_STATE_HOME to child processes.
        socket_dir: Directory where upterm creates its admin socket.
        daemon_log: Log file written by upterm itself.
        command_log: Output captured from the outer tmux pane.
        error_log: Standard error of the upterm host process.
        timeout_flag: Sentinel written by the watchdog before shutdown.
        continue_files: Accepted locations of the continue signal.
        home_dir: Home directory used for SSH files.
    """

    data_dir: Path
    runtime_dir: Path
    state_dir: Path
    socket_dir: Path
    daemon_log: Path
    command_log: Path
    error_log: Path
    timeout_flag: Path
    continue_files: tuple[Path, ...]
    home_dir: Path

    @classmethod
    def build(
        cls,
        profile: PlatformProfile,
        *,
        home: Path,
        workspace: Path | None = None,
        base_dir: Path | None = None,
    ) -> "RuntimePaths":  # noqa: UP037
        """Compute the runtime layout.

        Args:
            profile: The host platform profile.
            home: Home directory (absolute).
            workspace: Workspace directory for the sudo-free continue file.
            base_dir: Parent of the data directory; defaults to the system
                temporary directory.

        Returns:
            The computed RuntimePaths.
        """
        data_dir = (base_dir or _base_temp_dir(profile)) / DATA_DIR_NAME
        runtime_dir = data_dir / "runtime"
        state_dir = data_dir / "state"

        root_continue = (
            WINDOWS_ROOT_CONTINUE_FILE
            if profile.is_windows
            else POSIX_ROOT_CONTINUE_FILE
        )
        continue_files = [root_continue]
        if workspace is not None:
            continue_files.append(workspace / CONTINUE_FILE_NAME)

        return cls(
            data_dir=data_dir,
            runtime_dir=runtime_dir,
            state_dir=state_dir,
            socket_dir=runtime_dir / "upterm",
            daemon_log=state_dir / "upterm" / "upterm.log",
            command_log=data_dir / "upterm-command.log",
            error_log=data_dir / "upterm-error.log",
            timeout_flag=data_dir / TIMEOUT_FLAG_NAME,
            continue_files=tuple(continue_files),
            home_dir=home,
        )

    @property
    def ssh_dir(self) -> Path:
        """Return the absolute path of the .ssh directory."""
        return self.home_dir / ".ssh"

    def environment(self) -> dict[str, str]:
        """Serialize the layout into environment variables for child processes."""
        return {
            "HOME": str(self.home_dir),
            "XDG_RUNTIME_DIR": str(self.runtime_dir),
            "XDG_STATE_HOME": str(self.state_dir),
            "UPTERM_DATA_DIR": str(self.data_dir),
            "UPTERM_TIMEOUT_FLAG": str(self.timeout_flag),
        }

    def prepare(self) -> None:
        """Create the scratch directories and clear state left by an earlier run.

        A stale watchdog flag or admin socket would otherwise be mistaken for
        the new daemon's.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.runtime_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        self.state_dir.mkdir(parents=True, exist_ok=True)
        self.timeout_flag.unlink(missing_ok=True)
        for socket in self.socket_dir.glob("*.sock"):
            socket.unlink(missing_ok=True)

    def find_socket(self) -> Path | None:
        """Return the first upterm admin socket, or None if there is none."""
        if not self.socket_dir.is_dir():
            return None
        sockets = sorted(self.socket_dir.glob("*.sock"))
        return sockets[0] if sockets else None

    def socket_exists(self) -> bool:
        """Return True if upterm's admin socket is present."""
        return self.find_socket() is not None

    def find_continue_file(self) -> Path | None:
        """Return the first continue file that exists, or None."""
        for path in self.continue_files:
            if path.exists():
                return path
        return None

    def timeout_flagged(self) -> bool:
        """Return True once the watchdog has written its flag file."""
        return self.timeout_flag.exists()
