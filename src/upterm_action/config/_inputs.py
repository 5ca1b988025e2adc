"""Reading action inputs from the GitHub Actions environment."""

import os
from collections.abc import Mapping
from pathlib import Path

from ._models import DEFAULT_UPTERM_VERSION, ActionInputs

INPUT_UPTERM_SERVER = "upterm-server"
INPUT_WAIT_TIMEOUT_MINUTES = "wait-timeout-minutes"
INPUT_LIMIT_ACCESS_TO_USERS = "limit-access-to-users"
INPUT_LIMIT_ACCESS_TO_ACTOR = "limit-access-to-actor"
INPUT_SSH_KNOWN_HOSTS = "ssh-known-hosts"
INPUT_UPTERM_VERSION = "upterm-version"


def input_env_name(name: str) -> str:
    """Return the environment variable the runner uses for an input.

    The runner upper-cases the name and replaces spaces with underscores;
    hyphens are kept (`upterm-server` -> `INPUT_UPTERM-SERVER`).
    """
    return f"INPUT_{name.replace(' ', '_').upper()}"


def get_input(environ: Mapping[str, str], name: str, default: str = "") -> str:
    """Return a trimmed action input, or the default if it is unset or blank."""
    value = environ.get(input_env_name(name), "").strip()
    return value or default


def _home_dir(environ: Mapping[str, str]) -> Path:
    home = environ.get("HOME") or environ.get("USERPROFILE")
    if home:
        return Path(home).absolute()
    return Path.home()


def read_action_inputs(environ: Mapping[str, str] | None = None) -> ActionInputs:
    """Read all action inputs and the runner context from the environment.

    Args:
        environ: Environment mapping; defaults to os.environ.

    Returns:
        The raw ActionInputs.
    """
    env = os.environ if environ is None else environ
    workspace = env.get("GITHUB_WORKSPACE", "").strip()

    return ActionInputs(
        upterm_server=get_input(env, INPUT_UPTERM_SERVER),
        wait_timeout_minutes=get_input(env, INPUT_WAIT_TIMEOUT_MINUTES),
        limit_access_to_users=get_input(env, INPUT_LIMIT_ACCESS_TO_USERS),
        limit_access_to_actor=get_input(env, INPUT_LIMIT_ACCESS_TO_ACTOR),
        ssh_known_hosts=get_input(env, INPUT_SSH_KNOWN_HOSTS),
        upterm_version=get_input(env, INPUT_UPTERM_VERSION, DEFAULT_UPTERM_VERSION),
        actor=env.get("GITHUB_ACTOR", "").strip(),
        workspace=Path(workspace) if workspace else None,
        home=_home_dir(env),
    )
