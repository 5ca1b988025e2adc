"""Readiness failure diagnostics.

collect_diagnostics() assembles one paste-able report from everything the
controller can observe about a session that never became ready. It never
raises: a section that cannot be read is reported as such.
"""

from typing import TYPE_CHECKING

from upterm_action.exceptions import CommandError
from upterm_action.utils import describe_directory, tail_file

if TYPE_CHECKING:
    from pathlib import Path

    from upterm_action.runtime import RuntimePaths
    from upterm_action.utils import ShellRunner

ISSUES_URL = "https://github.com/owenthereal/action-upterm/issues"
READINESS_FAILURE_HEADER = "=== UPTERM READINESS FAILURE ==="
LIST_SESSIONS_TIMEOUT_SECONDS = 10.0


def _section(title: str, body: str) -> str:
    return f"--- {title} ---\n{body.rstrip() or '(empty)'}"


def _socket_listing(socket_dir: "Path") -> str:  # noqa: UP037
    if not socket_dir.is_dir():
        return f"{socket_dir} does not exist"
    try:
        return describe_directory(socket_dir)
    except OSError as e:
        return f"Could not list {socket_dir}: {e}"


def _log_tail(path: "Path") -> str:  # noqa: UP037
    if not path.is_file():
        return f"{path} not found"
    try:
        return tail_file(path)
    except OSError as e:
        return f"Could not read {path}: {e}"


def _tmux_sessions(shell: "ShellRunner") -> str:  # noqa: UP037
    try:
        result = shell.execute(
            "tmux list-sessions", timeout=LIST_SESSIONS_TIMEOUT_SECONDS
        )
    except CommandError as e:
        return f"Could not list tmux sessions: {e}"
    if result.success:
        return result.stdout
    return result.stderr or f"tmux exited with code {result.exit_code}"


def collect_diagnostics(
    paths: "RuntimePaths",  # noqa: UP037
    shell: "ShellRunner",  # noqa: UP037
) -> str:
    """Build the readiness failure report.

    Args:
        paths: Runtime layout of the session.
        shell: Shell runner used for the tmux session listing.

    Returns:
        A multi-line report ending with where to file a bug.
    """
    sections = [
        READINESS_FAILURE_HEADER,
        _section(
            f"Socket directory {paths.socket_dir}", _socket_listing(paths.socket_dir)
        ),
        _section("upterm log", _log_tail(paths.daemon_log)),
        _section("upterm command output", _log_tail(paths.command_log)),
        _section("upterm errors", _log_tail(paths.error_log)),
        _section("tmux sessions", _tmux_sessions(shell)),
        f"Please report this issue at {ISSUES_URL} with the output above.",
    ]
    return "\n\n".join(sections)
