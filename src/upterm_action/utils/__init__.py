"""Shared utilities: shell execution, logging and file helpers."""

from ._exec import (
    MAX_OUTPUT_BYTES,
    TERMINATE_GRACE_SECONDS,
    CommandResult,
    ShellRunner,
    find_shell,
    format_command_failure,
    truncate_output,
)
from ._files import DEFAULT_TAIL_LINES, append_text, describe_directory, tail_file
from ._logging import (
    JSONFileTee,
    LogFormatType,
    create_action_logger,
    debug_requested,
    escape_command_data,
    render_workflow_command,
)

__all__ = [
    "DEFAULT_TAIL_LINES",
    "MAX_OUTPUT_BYTES",
    "TERMINATE_GRACE_SECONDS",
    "CommandResult",
    "JSONFileTee",
    "LogFormatType",
    "ShellRunner",
    "append_text",
    "create_action_logger",
    "debug_requested",
    "describe_directory",
    "escape_command_data",
    "find_shell",
    "format_command_failure",
    "render_workflow_command",
    "tail_file",
    "truncate_output",
]
