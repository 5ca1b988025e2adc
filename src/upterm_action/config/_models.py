"""Configuration models.

This module defines the pydantic models for caller inputs, the validated
session configuration, and runtime settings:
- ActionInputs: raw action inputs as supplied by the workflow
- SessionConfig: validated, immutable session configuration
- LoggingConfig / TimeoutConfig / Settings: controller settings
"""

from enum import StrEnum
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

MAX_WAIT_TIMEOUT_MINUTES = 1440
DEFAULT_UPTERM_VERSION = "latest"


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Console log output format values."""

    ACTIONS = "actions"
    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Console output format.
        file: Path to a JSON log file (empty disables file logging).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.ACTIONS
    file: str = ""


class TimeoutConfig(BaseModel):
    """Timeouts applied to external commands.

    Attributes:
        command_seconds: Per-command timeout; SIGTERM then SIGKILL when exceeded.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    command_seconds: float = Field(default=300.0, gt=0)


class Settings(BaseModel):
    """Controller settings loaded from UPTERM_ACTION_* variables and CLI flags."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)


class ActionInputs(BaseModel):
    """Raw, unvalidated inputs supplied by the workflow.

    Attributes:
        upterm_server: Relay server address.
        wait_timeout_minutes: Minutes to wait for a client, or empty.
        limit_access_to_users: Whitespace/newline/comma separated GitHub users.
        limit_access_to_actor: "true" to add the triggering actor.
        ssh_known_hosts: Custom known_hosts content, or empty.
        upterm_version: Release tag to install, or "latest".
        actor: The GitHub user that triggered the workflow.
        workspace: Workspace directory, if known.
        home: Home directory used for SSH files.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    upterm_server: str = ""
    wait_timeout_minutes: str = ""
    limit_access_to_users: str = ""
    limit_access_to_actor: str = ""
    ssh_known_hosts: str = ""
    upterm_version: str = DEFAULT_UPTERM_VERSION
    actor: str = ""
    workspace: Path | None = None
    home: Path = Field(default_factory=Path.home)


class SessionConfig(BaseModel):
    """Validated session configuration, built once by validate().

    Attributes:
        server: Relay server address (any non-empty string).
        wait_timeout_minutes: Watchdog timeout, or None for no timeout.
        principals: Unique authorized GitHub users in first-seen order.
        known_hosts: Custom trust-anchor text, or None to scan the relay.
        upterm_version: Release tag to install, or "latest".
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    server: str = Field(min_length=1)
    wait_timeout_minutes: int | None = Field(
        default=None, ge=0, le=MAX_WAIT_TIMEOUT_MINUTES
    )
    principals: tuple[str, ...] = ()
    known_hosts: str | None = None
    upterm_version: str = DEFAULT_UPTERM_VERSION
