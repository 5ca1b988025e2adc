"""Shell execution primitive.

Every external command the controller runs goes through ShellRunner, which
merges the runtime environment into the child process, fully drains stdout
and stderr, and always observes the exit status.
"""

import os
import shutil
import subprocess
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, final

from upterm_action.exceptions import CommandError, CommandTimeoutError

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

# Seconds between SIGTERM and SIGKILL when a command times out
TERMINATE_GRACE_SECONDS: float = 5.0

# Maximum output size in bytes kept in error messages
MAX_OUTPUT_BYTES: int = 102400  # 100KB


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result from a completed shell command.

    Attributes:
        command: The command line that was executed.
        exit_code: Process exit code.
        stdout: Standard output from the command.
        stderr: Standard error from the command.
    """

    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        """Return True if the command exited with status 0."""
        return self.exit_code == 0


def truncate_output(output: str, max_bytes: int = MAX_OUTPUT_BYTES) -> str:
    """Truncate output to max bytes, preserving valid UTF-8.

    Args:
        output: The string to truncate.
        max_bytes: Maximum size in bytes.

    Returns:
        Truncated string with indicator if truncated.
    """
    if not output:
        return output

    encoded = output.encode("utf-8")
    if len(encoded) <= max_bytes:
        return output

    # Drop a partial multi-byte sequence at the cut
    truncated = encoded[:max_bytes].decode("utf-8", errors="ignore")
    return truncated + "\n... [output truncated]"


def format_command_failure(command: str, exit_code: int, stderr: str) -> str:
    """Build the message for a command that exited non-zero."""
    message = f"Command failed with exit code {exit_code}: {command}"
    if stderr:
        return f"{message}\nStderr: {truncate_output(stderr)}"
    return message


def find_shell() -> str:
    """Return the bash executable used for all command lines."""
    return shutil.which("bash") or "/bin/bash"


@final
class ShellRunner:
    """Runs command lines through bash with the runtime environment applied.

    The environment mapping is merged over os.environ at invocation time, so
    later PATH changes made by the installer are visible to every command.
    """

    __slots__ = ("_env", "_executable", "_logger", "_popen", "_timeout")

    def __init__(
        self,
        *,
        env: Mapping[str, str] | None = None,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
        timeout: float | None = None,
        executable: str | None = None,
        popen: Callable[..., subprocess.Popen[bytes]] = subprocess.Popen,
    ) -> None:
        """Initialize the runner.

        Args:
            env: Variables added to every child's environment.
            logger: Logger for debug tracing of executed commands.
            timeout: Default per-command timeout in seconds (None waits forever).
            executable: Shell used to interpret command lines; bash by default.
            popen: Process factory, replaceable in tests.
        """
        self._env: dict[str, str] = dict(env or {})
        self._logger = logger
        self._timeout = timeout
        self._executable = executable or find_shell()
        self._popen = popen

    @property
    def env(self) -> dict[str, str]:
        """Return a copy of the variables injected into child processes."""
        return dict(self._env)

    def _child_env(self) -> dict[str, str]:
        return {**os.environ, **self._env}

    def execute(self, command: str, *, timeout: float | None = None) -> CommandResult:
        """Run a command line and return its result without checking the status.

        Args:
            command: Command line interpreted by bash.
            timeout: Seconds before the command is terminated; overrides the
                runner default.

        Returns:
            CommandResult with exit code and decoded output.

        Raises:
            CommandError: If the command is empty or the shell cannot be spawned.
            CommandTimeoutError: If the command exceeded its timeout.
        """
        if not command.strip():
            msg = "Command cannot be empty"
            raise CommandError(msg, command=command)

        if self._logger is not None:
            self._logger.debug(f"Executing shell command: [{command}]")

        effective_timeout = timeout if timeout is not None else self._timeout

        try:
            process = self._popen(  # noqa: S603
                [self._executable, "-c", command],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                env=self._child_env(),
            )
        except OSError as e:
            msg = f"Process error: {e}"
            raise CommandError(msg, command=command) from e

        try:
            stdout_bytes, stderr_bytes = process.communicate(timeout=effective_timeout)
        except subprocess.TimeoutExpired as e:
            stderr = _terminate(process)
            msg = f"Command timed out after {effective_timeout}s: {command}"
            raise CommandTimeoutError(
                msg,
                command=command,
                timeout=effective_timeout or 0.0,
                stderr=stderr,
            ) from e

        return CommandResult(
            command=command,
            exit_code=process.returncode,
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
        )

    def run(self, command: str, *, timeout: float | None = None) -> str:
        """Run a command line and return its stdout.

        Args:
            command: Command line interpreted by bash.
            timeout: Seconds before the command is terminated.

        Returns:
            The command's standard output.

        Raises:
            CommandError: If the command exits non-zero or cannot be spawned.
            CommandTimeoutError: If the command exceeded its timeout.
        """
        result = self.execute(command, timeout=timeout)
        if not result.success:
            msg = format_command_failure(command, result.exit_code, result.stderr)
            raise CommandError(
                msg,
                command=command,
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
        return result.stdout


def _terminate(process: subprocess.Popen[bytes]) -> str:
    """Stop a timed-out process: SIGTERM, then SIGKILL after a grace period."""
    process.terminate()
    try:
        _, stderr_bytes = process.communicate(timeout=TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        process.kill()
        _, stderr_bytes = process.communicate()
    return (stderr_bytes or b"").decode("utf-8", errors="replace")
