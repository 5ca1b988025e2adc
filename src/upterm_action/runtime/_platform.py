"""Host platform detection.

This module derives the PlatformProfile once at startup:
- OSFamily: closed set of supported operating systems
- Architecture: CPU architectures upterm publishes releases for
- map_architecture: total mapping from machine name to Architecture
"""

import platform
import sys
from dataclasses import dataclass
from enum import StrEnum

from upterm_action.exceptions import UnsupportedArchitectureError

MSYS2_BASH = "C:/msys64/usr/bin/bash.exe"


class OSFamily(StrEnum):
    """Operating system families with an install branch."""

    LINUX = "linux"
    DARWIN = "darwin"
    WINDOWS = "windows"

    @property
    def display_name(self) -> str:
        """Return the human-readable platform name used in error messages."""
        match self:
            case OSFamily.LINUX:
                return "Linux"
            case OSFamily.DARWIN:
                return "macOS"
            case OSFamily.WINDOWS:
                return "Windows"


class Architecture(StrEnum):
    """CPU architecture names as used in upterm release archives."""

    AMD64 = "amd64"
    ARM64 = "arm64"


# Machine names reported by platform.machine() on the supported runners,
# normalized to the names used by GitHub runner metadata.
_MACHINE_ALIASES: dict[str, str] = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def normalize_machine(machine: str) -> str:
    """Normalize a raw machine name to `x64`, `arm64`, or its lower-cased self."""
    lowered = machine.strip().lower()
    return _MACHINE_ALIASES.get(lowered, lowered)


def map_architecture(machine: str) -> Architecture:
    """Map a normalized machine name to an upterm release architecture.

    Args:
        machine: Normalized machine name (see normalize_machine).

    Returns:
        The matching Architecture.

    Raises:
        UnsupportedArchitectureError: For anything other than x64 or arm64.
    """
    match machine:
        case "x64":
            return Architecture.AMD64
        case "arm64":
            return Architecture.ARM64
        case _:
            msg = (
                f"Unsupported architecture for upterm: {machine}. "
                "Only x64 and arm64 are supported."
            )
            raise UnsupportedArchitectureError(msg, architecture=machine)


def detect_os_family(sys_platform: str | None = None) -> OSFamily:
    """Detect the operating system family.

    Args:
        sys_platform: Value to inspect instead of sys.platform.

    Returns:
        The detected OSFamily.

    Raises:
        ValueError: If the platform is not one of linux, darwin, or windows.
    """
    value = sys.platform if sys_platform is None else sys_platform
    if value.startswith("linux"):
        return OSFamily.LINUX
    if value == "darwin":
        return OSFamily.DARWIN
    if value in ("win32", "cygwin", "msys"):
        return OSFamily.WINDOWS
    msg = f"Unsupported operating system: {value}"
    raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class PlatformProfile:
    """Immutable description of the host the controller runs on.

    Attributes:
        os_family: Operating system family.
        machine: Normalized machine name (x64, arm64, or the raw value).
    """

    os_family: OSFamily
    machine: str

    @property
    def is_windows(self) -> bool:
        """Return True when running on Windows."""
        return self.os_family is OSFamily.WINDOWS

    @property
    def shell_executable(self) -> str | None:
        """Return the shell to run commands with, or None to search PATH.

        On Windows pacman and tmux only exist inside the msys2 tree, so its
        bash is used instead of whatever bash comes first on PATH.
        """
        return MSYS2_BASH if self.is_windows else None

    @classmethod
    def detect(cls) -> "PlatformProfile":  # noqa: UP037
        """Build a profile for the current process."""
        return cls(
            os_family=detect_os_family(),
            machine=normalize_machine(platform.machine()),
        )
