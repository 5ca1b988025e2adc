"""Host platform profile and runtime filesystem layout.

Key Components:
    - OSFamily: Supported operating system families
    - Architecture: upterm release architectures
    - PlatformProfile: Immutable host description
    - RuntimePaths: Deterministic socket, flag, log and SSH locations
    - map_architecture: Total machine-name to Architecture mapping
"""

from ._paths import RuntimePaths
from ._platform import (
    MSYS2_BASH,
    Architecture,
    OSFamily,
    PlatformProfile,
    detect_os_family,
    map_architecture,
    normalize_machine,
)

__all__ = [
    "MSYS2_BASH",
    "Architecture",
    "OSFamily",
    "PlatformProfile",
    "RuntimePaths",
    "detect_os_family",
    "map_architecture",
    "normalize_machine",
]
