"""upterm-action exceptions."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from upterm_action.runtime import OSFamily


class UptermActionError(Exception):
    """Base exception for upterm-action errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ValidationError(UptermActionError, ValueError):
    """Raised when caller-supplied inputs are invalid.

    Validation happens before any side effect, so a ValidationError means
    nothing was installed, written, or launched.

    Attributes:
        input_name: The action input that failed validation.
    """

    def __init__(self, message: str, *, input_name: str | None = None) -> None:
        """Initialize with error message and input context.

        Args:
            message: Human-readable error message.
            input_name: The action input that failed validation.
        """
        super().__init__(message)
        self.input_name: str | None = input_name


class MissingServerError(ValidationError):
    """Raised when the upterm-server input is empty or absent."""


class InvalidTimeoutError(ValidationError):
    """Raised when wait-timeout-minutes is not an integer in [0, 1440].

    Attributes:
        value: The raw value that was rejected.
    """

    def __init__(
        self,
        message: str,
        *,
        input_name: str | None = None,
        value: str | None = None,
    ) -> None:
        """Initialize with error message and the rejected value."""
        super().__init__(message, input_name=input_name)
        self.value: str | None = value


class InvalidPrincipalError(ValidationError):
    """Raised when an authorized user name cannot be safely quoted.

    Attributes:
        principal: The rejected user name.
    """

    def __init__(
        self,
        message: str,
        *,
        input_name: str | None = None,
        principal: str | None = None,
    ) -> None:
        """Initialize with error message and the rejected principal."""
        super().__init__(message, input_name=input_name)
        self.principal: str | None = principal


class SettingsError(UptermActionError):
    """Raised when runtime settings cannot be parsed or validated.

    Attributes:
        key: Dotted settings key, when the failure is attributable to one.
    """

    def __init__(self, message: str, *, key: str | None = None) -> None:
        """Initialize with error message and settings key context."""
        super().__init__(message)
        self.key: str | None = key


# =============================================================================
# Shell Execution Exceptions
# =============================================================================


class CommandError(UptermActionError):
    """Raised when a shell command exits non-zero or cannot be spawned.

    Attributes:
        command: The command line that failed.
        exit_code: Process exit code, or None if the process never ran.
        stderr: Captured standard error.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str,
        exit_code: int | None = None,
        stderr: str = "",
    ) -> None:
        """Initialize with error message and process context.

        Args:
            message: Human-readable error message.
            command: The command line that failed.
            exit_code: Process exit code, or None if the process never ran.
            stderr: Captured standard error.
        """
        super().__init__(message)
        self.command: str = command
        self.exit_code: int | None = exit_code
        self.stderr: str = stderr


class CommandTimeoutError(CommandError):
    """Raised when a shell command exceeds its timeout and is terminated.

    Attributes:
        timeout: The timeout in seconds that was exceeded.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str,
        timeout: float,
        stderr: str = "",
    ) -> None:
        """Initialize with error message and timeout context."""
        super().__init__(message, command=command, stderr=stderr)
        self.timeout: float = timeout


# =============================================================================
# Installer Exceptions
# =============================================================================


class UnsupportedArchitectureError(UptermActionError):
    """Raised when the CPU architecture has no upterm release.

    Attributes:
        architecture: The architecture name that was not recognized.
    """

    def __init__(self, message: str, *, architecture: str) -> None:
        """Initialize with error message and architecture name."""
        super().__init__(message)
        self.architecture: str = architecture


class DependencyInstallError(UptermActionError):
    """Raised when upterm or tmux cannot be installed.

    Attributes:
        os_family: The platform whose install branch failed.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        os_family: "OSFamily",  # noqa: UP037
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and platform context.

        Args:
            message: Human-readable error message.
            os_family: The platform whose install branch failed.
            cause: The underlying exception that caused the failure.
        """
        super().__init__(message)
        self.os_family: "OSFamily" = os_family  # noqa: UP037
        self.cause: Exception | None = cause


# =============================================================================
# SSH Provisioning Exceptions
# =============================================================================


class SSHProvisioningError(UptermActionError):
    """Base exception for SSH credential provisioning errors.

    Attributes:
        cause: The underlying exception that caused the failure.
    """

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        """Initialize with error message and underlying cause."""
        super().__init__(message)
        self.cause: Exception | None = cause


class SSHKeygenError(SSHProvisioningError):
    """Raised when SSH keypair generation fails."""


class SSHConfigError(SSHProvisioningError):
    """Raised when the SSH client configuration cannot be written."""


class KnownHostsSetupError(SSHProvisioningError):
    """Raised when known_hosts cannot be populated."""


# =============================================================================
# Session Exceptions
# =============================================================================


class SessionError(UptermActionError):
    """Base exception for upterm session errors."""


class SessionCreationError(SessionError):
    """Raised when the tmux/upterm session or its watchdog cannot be started.

    Attributes:
        cause: The underlying exception that caused the failure.
        error_log: Contents of the side-channel error log, if any was read.
    """

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        error_log: str | None = None,
    ) -> None:
        """Initialize with error message, cause and error log excerpt."""
        super().__init__(message)
        self.cause: Exception | None = cause
        self.error_log: str | None = error_log


class ReadinessTimeoutError(SessionError):
    """Raised when the upterm socket never appears.

    The message is a full diagnostics report.

    Attributes:
        attempts: Number of readiness checks performed.
        diagnostics: The diagnostics report.
    """

    def __init__(self, message: str, *, attempts: int, diagnostics: str) -> None:
        """Initialize with the diagnostics report."""
        super().__init__(message)
        self.attempts: int = attempts
        self.diagnostics: str = diagnostics


class MonitoringError(SessionError):
    """Raised when the status query fails in an unrecognized way.

    Attributes:
        cause: The underlying exception that caused the failure.
    """

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        """Initialize with error message and underlying cause."""
        super().__init__(message)
        self.cause: Exception | None = cause
