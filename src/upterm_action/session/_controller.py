"""End-to-end session lifecycle."""

import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from upterm_action.config import validate

from ._credentials import SSHProvisioner
from ._installer import DependencyInstaller
from ._launcher import SessionLauncher
from ._monitor import SessionMonitor

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from upterm_action.config import ActionInputs
    from upterm_action.runtime import PlatformProfile, RuntimePaths
    from upterm_action.utils import ShellRunner

    from ._models import SessionState


def run_session(  # noqa: PLR0913
    inputs: "ActionInputs",  # noqa: UP037
    *,
    profile: "PlatformProfile",  # noqa: UP037
    paths: "RuntimePaths",  # noqa: UP037
    shell: "ShellRunner",  # noqa: UP037
    logger: "FilteringBoundLogger",  # noqa: UP037
    installer: DependencyInstaller | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> "SessionState":  # noqa: UP037
    """Validate inputs, then install, provision, launch and monitor.

    Steps run strictly in order and each one completes before the next
    starts. Validation happens before anything touches the filesystem.

    Args:
        inputs: Raw action inputs.
        profile: Host platform profile.
        paths: Runtime layout; its environment must already be applied to shell.
        shell: Shell runner for every external command.
        logger: Action logger.
        installer: Dependency installer; built from profile when None.
        sleep: Blocking sleep used by the readiness and monitor loops.

    Returns:
        The terminal state that ended the session.

    Raises:
        UptermActionError: Any validation or step failure.
    """
    config = validate(inputs)
    if inputs.limit_access_to_actor == "true" and inputs.actor:
        logger.info(f'Adding actor "{inputs.actor}" to allowed users.')

    paths.prepare()

    installer = installer or DependencyInstaller(
        profile, shell, logger, version=config.upterm_version
    )
    _ = installer.install()

    SSHProvisioner(paths, shell, logger).provision(config)

    launcher = SessionLauncher(config, paths, shell, logger, sleep=sleep)
    launcher.start()
    launcher.wait_until_ready()

    return SessionMonitor(paths, shell, logger, sleep=sleep).run()
