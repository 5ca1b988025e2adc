"""Action inputs, input validation and controller settings.

Key Components:
    - ActionInputs: Raw inputs read from INPUT_* variables
    - SessionConfig: Validated, immutable session configuration
    - Settings: Logging and timeout settings from UPTERM_ACTION_* variables
    - validate: Pure input validation
    - read_action_inputs / load_settings: Environment loaders
"""

from ._inputs import (
    INPUT_LIMIT_ACCESS_TO_ACTOR,
    INPUT_LIMIT_ACCESS_TO_USERS,
    INPUT_SSH_KNOWN_HOSTS,
    INPUT_UPTERM_SERVER,
    INPUT_UPTERM_VERSION,
    INPUT_WAIT_TIMEOUT_MINUTES,
    get_input,
    input_env_name,
    read_action_inputs,
)
from ._loader import ENV_PREFIX, deep_merge, load_settings, parse_env_vars
from ._models import (
    DEFAULT_UPTERM_VERSION,
    MAX_WAIT_TIMEOUT_MINUTES,
    ActionInputs,
    LogFormat,
    LoggingConfig,
    LogLevel,
    SessionConfig,
    Settings,
    TimeoutConfig,
)
from ._validation import (
    INVALID_TIMEOUT_MESSAGE,
    MISSING_SERVER_MESSAGE,
    parse_principals,
    parse_timeout,
    validate,
)

__all__ = [
    "DEFAULT_UPTERM_VERSION",
    "ENV_PREFIX",
    "INPUT_LIMIT_ACCESS_TO_ACTOR",
    "INPUT_LIMIT_ACCESS_TO_USERS",
    "INPUT_SSH_KNOWN_HOSTS",
    "INPUT_UPTERM_SERVER",
    "INPUT_UPTERM_VERSION",
    "INPUT_WAIT_TIMEOUT_MINUTES",
    "INVALID_TIMEOUT_MESSAGE",
    "MAX_WAIT_TIMEOUT_MINUTES",
    "MISSING_SERVER_MESSAGE",
    "ActionInputs",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "SessionConfig",
    "Settings",
    "TimeoutConfig",
    "deep_merge",
    "get_input",
    "input_env_name",
    "load_settings",
    "parse_env_vars",
    "parse_principals",
    "parse_timeout",
    "read_action_inputs",
    "validate",
]
