"""upterm session lifecycle.

Key Components:
    - DependencyInstaller: Installs upterm and tmux for the host platform
    - SSHProvisioner: SSH keys, client config and known_hosts
    - SessionLauncher: Nested tmux sessions, watchdog and readiness polling
    - SessionMonitor: Polls the session until a terminal state
    - SessionState / classify: Per-tick state derivation
    - run_session: The full lifecycle in order
"""

from ._controller import run_session
from ._credentials import (
    RELAY_HOST,
    SSH_CLIENT_CONFIG,
    SSHProvisioner,
    cert_authority_line,
    relay_entries,
)
from ._diagnostics import ISSUES_URL, collect_diagnostics
from ._installer import (
    RELEASES_URL,
    ArchiveFetcher,
    DependencyInstaller,
    HttpArchiveFetcher,
    InstallPlan,
    extract_binary,
    install_plan,
    release_url,
)
from ._launcher import (
    INNER_SESSION,
    OUTER_SESSION,
    SessionLauncher,
    build_authorization_flags,
    build_host_command,
    build_watchdog_command,
)
from ._models import Observation, SessionState, classify
from ._monitor import (
    CONNECTION_LOST_SIGNATURES,
    TIMEOUT_CLEANUP_MESSAGE,
    TIMEOUT_MESSAGE,
    SessionMonitor,
    is_connection_lost,
)

__all__ = [
    "CONNECTION_LOST_SIGNATURES",
    "INNER_SESSION",
    "ISSUES_URL",
    "OUTER_SESSION",
    "RELAY_HOST",
    "RELEASES_URL",
    "SSH_CLIENT_CONFIG",
    "TIMEOUT_CLEANUP_MESSAGE",
    "TIMEOUT_MESSAGE",
    "ArchiveFetcher",
    "DependencyInstaller",
    "HttpArchiveFetcher",
    "InstallPlan",
    "Observation",
    "SSHProvisioner",
    "SessionLauncher",
    "SessionMonitor",
    "SessionState",
    "build_authorization_flags",
    "build_host_command",
    "build_watchdog_command",
    "cert_authority_line",
    "classify",
    "collect_diagnostics",
    "extract_binary",
    "install_plan",
    "is_connection_lost",
    "relay_entries",
    "release_url",
    "run_session",
]
