"""SSH credential provisioning.

Generates the host's SSH keypairs, appends the client configuration, and
populates known_hosts either from caller-supplied text or by scanning the
public upterm relay.
"""

import shlex
from typing import TYPE_CHECKING, final

from upterm_action.exceptions import (
    CommandError,
    KnownHostsSetupError,
    SSHConfigError,
    SSHKeygenError,
)
from upterm_action.utils import append_text

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from upterm_action.config import SessionConfig
    from upterm_action.runtime import RuntimePaths
    from upterm_action.utils import ShellRunner

RELAY_HOST = "uptermd.upterm.dev"

SSH_CLIENT_CONFIG = """Host *
  StrictHostKeyChecking no
  CheckHostIP no
  TCPKeepAlive yes
  ServerAliveInterval 30
  ServerAliveCountMax 180
  VerifyHostKeyDNS yes
  UpdateHostKeys yes
"""


def _host_matches(host_field: str, host: str) -> bool:
    for name in host_field.split(","):
        if name == host:
            return True
        # Non-default ports are written as [host]:port
        if name.startswith(f"[{host}]:"):
            return True
    return False


def relay_entries(scan_output: str, host: str = RELAY_HOST) -> list[str]:
    """Return the known_hosts lines from an ssh-keyscan run that name host.

    Comment lines, blank lines and entries for any other host are dropped.
    """
    entries: list[str] = []
    for raw_line in scan_output.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        fields = line.split()
        if len(fields) < 3:  # noqa: PLR2004
            continue
        if _host_matches(fields[0], host):
            entries.append(" ".join(fields[:3]))
    return entries


def cert_authority_line(entry: str) -> str:
    """Build a `@cert-authority *` line from a known_hosts entry's key."""
    _, key_type, key = entry.split()[:3]
    return f"@cert-authority * {key_type} {key}"


@final
class SSHProvisioner:
    """Provisions SSH keys, client config and known_hosts for upterm."""

    __slots__ = ("_logger", "_paths", "_relay_host", "_shell")

    def __init__(
        self,
        paths: "RuntimePaths",  # noqa: UP037
        shell: "ShellRunner",  # noqa: UP037
        logger: "FilteringBoundLogger",  # noqa: UP037
        *,
        relay_host: str = RELAY_HOST,
    ) -> None:
        self._paths = paths
        self._shell = shell
        self._logger = logger
        self._relay_host = relay_host

    @property
    def private_key(self) -> "Path":  # noqa: UP037
        """Return the path of the primary (RSA) private key."""
        return self._paths.ssh_dir / "id_rsa"

    @property
    def known_hosts(self) -> "Path":  # noqa: UP037
        """Return the path of the known_hosts file."""
        return self._paths.ssh_dir / "known_hosts"

    def provision(self, config: "SessionConfig") -> None:  # noqa: UP037
        """Run every provisioning step in order.

        Raises:
            SSHKeygenError: If key generation fails.
            SSHConfigError: If the client config cannot be written.
            KnownHostsSetupError: If known_hosts cannot be populated.
        """
        self.ensure_keys()
        self.configure_client()
        self.setup_known_hosts(config.known_hosts)

    def ensure_keys(self) -> None:
        """Generate RSA and Ed25519 keypairs unless the RSA key already exists."""
        if self.private_key.exists():
            self._logger.debug("SSH key already exists")
            return

        self._logger.debug("Generating SSH keys")
        ssh_dir = self._paths.ssh_dir
        ed25519_key = ssh_dir / "id_ed25519"
        command = (
            f'ssh-keygen -q -t rsa -N "" -f {shlex.quote(str(self.private_key))}'
            f' && ssh-keygen -q -t ed25519 -N "" -f {shlex.quote(str(ed25519_key))}'
        )
        try:
            ssh_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
            _ = self._shell.run(command)
        except (CommandError, OSError) as e:
            msg = f"Failed to generate SSH keys: {e}"
            raise SSHKeygenError(msg, cause=e) from e
        self._logger.debug("Generated SSH keys successfully")

    def configure_client(self) -> None:
        """Append the permissive Host * stanza to the SSH client config.

        The stanza is appended on every run; the file is never rewritten.
        """
        self._logger.debug("Configuring ssh client")
        try:
            append_text(self._paths.ssh_dir / "config", SSH_CLIENT_CONFIG)
        except OSError as e:
            msg = f"Failed to write SSH client config: {e}"
            raise SSHConfigError(msg, cause=e) from e

    def setup_known_hosts(self, custom: str | None) -> None:
        """Populate known_hosts from custom text or by scanning the relay."""
        if custom:
            self._append_custom_known_hosts(custom)
        else:
            self._scan_relay()

    def _append_custom_known_hosts(self, custom: str) -> None:
        self._logger.info(
            "Appending ssh-known-hosts to ~/.ssh/known_hosts. "
            "Contents of ~/.ssh/known_hosts:"
        )
        text = custom if custom.endswith("\n") else f"{custom}\n"
        try:
            append_text(self.known_hosts, text)
            contents = self.known_hosts.read_text(encoding="utf-8")
        except OSError as e:
            msg = f"Failed to write known_hosts: {e}"
            raise KnownHostsSetupError(msg, cause=e) from e
        self._logger.info(contents.rstrip("\n"))

    def _scan_relay(self) -> None:
        host = self._relay_host
        self._logger.info(
            f"Auto-generating ~/.ssh/known_hosts by attempting connection to {host}"
        )
        try:
            output = self._shell.run(f"ssh-keyscan {shlex.quote(host)} 2>/dev/null")
        except CommandError as e:
            msg = f"Failed to scan SSH keys: {e}"
            raise KnownHostsSetupError(msg, cause=e) from e

        entries = relay_entries(output, host)
        if not entries:
            msg = f"Failed to scan SSH keys: no host keys returned for {host}"
            raise KnownHostsSetupError(msg)

        lines = [*entries, cert_authority_line(entries[0])]
        try:
            append_text(self.known_hosts, "\n".join(lines) + "\n")
        except OSError as e:
            msg = f"Failed to generate cert-authority entry: {e}"
            raise KnownHostsSetupError(msg, cause=e) from e
        self._logger.debug(
            f"Added {len(entries)} host key(s) and a cert-authority entry"
        )
