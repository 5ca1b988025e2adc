"""Input validation.

validate() turns raw ActionInputs into a SessionConfig. It is a pure
function of the input strings: no network or filesystem access happens
here, so a rejected input never leaves side effects behind.
"""

import re

from upterm_action.exceptions import (
    InvalidPrincipalError,
    InvalidTimeoutError,
    MissingServerError,
)

from ._inputs import (
    INPUT_LIMIT_ACCESS_TO_USERS,
    INPUT_UPTERM_SERVER,
    INPUT_WAIT_TIMEOUT_MINUTES,
)
from ._models import MAX_WAIT_TIMEOUT_MINUTES, ActionInputs, SessionConfig

MISSING_SERVER_MESSAGE = "upterm-server is required"
INVALID_TIMEOUT_MESSAGE = (
    f"wait-timeout-minutes must be an integer between 0 and {MAX_WAIT_TIMEOUT_MINUTES}"
)

_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
_PRINCIPAL_SEPARATORS = re.compile(r"[\s,]+")
# GitHub logins, plus the [bot] suffix of app actors such as dependabot[bot];
# anything else could break out of the nested shell quoting
_PRINCIPAL_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*(?:\[bot\])?")


def parse_timeout(raw: str) -> int | None:
    """Parse the wait-timeout-minutes input.

    Args:
        raw: The trimmed input string.

    Returns:
        The timeout in minutes, or None when the input is empty.

    Raises:
        InvalidTimeoutError: If the value is not a base-10 integer in
            [0, MAX_WAIT_TIMEOUT_MINUTES].
    """
    if raw == "":
        return None

    if _INTEGER_PATTERN.fullmatch(raw) is None:
        raise InvalidTimeoutError(
            INVALID_TIMEOUT_MESSAGE, input_name=INPUT_WAIT_TIMEOUT_MINUTES, value=raw
        )

    minutes = int(raw, 10)
    if not 0 <= minutes <= MAX_WAIT_TIMEOUT_MINUTES:
        raise InvalidTimeoutError(
            INVALID_TIMEOUT_MESSAGE, input_name=INPUT_WAIT_TIMEOUT_MINUTES, value=raw
        )
    return minutes


def parse_principals(
    users: str,
    *,
    actor: str = "",
    include_actor: bool = False,
) -> tuple[str, ...]:
    """Split the authorized user list and append the actor if requested.

    Duplicates are dropped, keeping the first occurrence.

    Raises:
        InvalidPrincipalError: If a user name is not a valid GitHub login.
    """
    candidates = [name for name in _PRINCIPAL_SEPARATORS.split(users) if name]
    if include_actor and actor:
        candidates.append(actor)

    for name in candidates:
        if _PRINCIPAL_PATTERN.fullmatch(name) is None:
            msg = (
                "limit-access-to-users contains an invalid GitHub user name: "
                f"{name!r}"
            )
            raise InvalidPrincipalError(
                msg, input_name=INPUT_LIMIT_ACCESS_TO_USERS, principal=name
            )

    return tuple(dict.fromkeys(candidates))


def validate(inputs: ActionInputs) -> SessionConfig:
    """Validate raw action inputs and build the session configuration.

    Args:
        inputs: Raw inputs read from the environment.

    Returns:
        The immutable SessionConfig.

    Raises:
        MissingServerError: If upterm-server is empty.
        InvalidTimeoutError: If wait-timeout-minutes is malformed or out of range.
        InvalidPrincipalError: If an authorized user name is malformed.
    """
    if not inputs.upterm_server:
        raise MissingServerError(MISSING_SERVER_MESSAGE, input_name=INPUT_UPTERM_SERVER)

    timeout = parse_timeout(inputs.wait_timeout_minutes)
    principals = parse_principals(
        inputs.limit_access_to_users,
        actor=inputs.actor,
        include_actor=inputs.limit_access_to_actor == "true",
    )

    return SessionConfig(
        server=inputs.upterm_server,
        wait_timeout_minutes=timeout,
        principals=principals,
        known_hosts=inputs.ssh_known_hosts or None,
        upterm_version=inputs.upterm_version,
    )
