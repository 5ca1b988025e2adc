"""Logging utilities for upterm-action.

This module provides standalone structlog logger factories. The default
format renders GitHub Actions workflow commands so that debug and error
lines are picked up by the runner; plain text and JSON formats are
available for local use. Each logger is self-contained and does not modify
global structlog configuration.
"""

import logging
import sys
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TextIO, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import EventDict, FilteringBoundLogger, WrappedLogger

LogFormatType = Literal["actions", "json", "text"]

# Level name -> workflow command; info is printed without a command
_WORKFLOW_COMMANDS: dict[str, str] = {
    "debug": "debug",
    "warning": "warning",
    "error": "error",
    "critical": "error",
}


def debug_requested() -> bool:
    """Return True if debug logging is forced by the environment.

    RUNNER_DEBUG is set by GitHub when a workflow is re-run with debug
    logging; UPTERM_ACTION_DEBUG forces it locally.
    """
    return getenv("RUNNER_DEBUG", "") == "1" or bool(getenv("UPTERM_ACTION_DEBUG"))


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, RUNNER_DEBUG/UPTERM_ACTION_DEBUG override to DEBUG.

    Returns:
        The logging level as an integer.
    """
    if respect_env and debug_requested():
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def escape_command_data(data: str) -> str:
    """Escape a message for use as workflow command data."""
    return data.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def render_workflow_command(
    _logger: "WrappedLogger",  # noqa: UP037
    _method_name: str,
    event_dict: "EventDict",  # noqa: UP037
) -> str:
    """Render an event as a GitHub Actions workflow command line.

    Extra key/value pairs are appended as `key=value` so that structured
    context is not lost.
    """
    level = str(event_dict.pop("level", "info"))
    event_dict.pop("timestamp", None)
    message = str(event_dict.pop("event", ""))
    if event_dict:
        extras = " ".join(f"{key}={value}" for key, value in event_dict.items())
        message = f"{message} {extras}" if message else extras

    command = _WORKFLOW_COMMANDS.get(level)
    if command is None:
        return message
    return f"::{command}::{escape_command_data(message)}"


class JSONFileTee:
    """Processor that appends every event as a JSON line to a file.

    The event dict is passed through unchanged so the console renderer
    still runs afterwards.
    """

    __slots__ = ("_file", "_renderer")

    def __init__(self, file: TextIO) -> None:
        self._file = file
        self._renderer = structlog.processors.JSONRenderer()

    def __call__(
        self,
        logger: "WrappedLogger",  # noqa: UP037
        method_name: str,
        event_dict: "EventDict",  # noqa: UP037
    ) -> "EventDict":  # noqa: UP037
        line = self._renderer(logger, method_name, dict(event_dict))
        _ = self._file.write(f"{line}\n")
        self._file.flush()
        return event_dict


def create_action_logger(
    *,
    level: str = "info",
    log_format: LogFormatType = "actions",
    log_file: str = "",
    stream: TextIO | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create the logger used for all user-facing controller output.

    The log level can be overridden by environment variables:
    - RUNNER_DEBUG=1 or UPTERM_ACTION_DEBUG: enables DEBUG level

    Args:
        level: Log level threshold (debug, info, warning, error).
        log_format: Console format: workflow commands, JSON, or plain text.
        log_file: Optional path; every event is also appended there as JSON.
        stream: Console stream (defaults to stdout).

    Returns:
        A FilteringBoundLogger instance.
    """
    effective_level = _log_level_from_string(level, respect_env=True)

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        processors.append(JSONFileTee(log_path.open("a", encoding="utf-8")))

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    elif log_format == "text":
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    else:
        processors.append(render_workflow_command)

    raw_logger = structlog.PrintLogger(
        file=stream if stream is not None else sys.stdout
    )

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw_logger,
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(effective_level),
            context_class=dict,
        ),
    )

