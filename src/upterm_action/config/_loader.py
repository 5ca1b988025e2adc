# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Settings loading from environment variables and CLI overrides."""

import os
from collections.abc import Mapping
from typing import Any

import pydantic

from upterm_action.exceptions import SettingsError

from ._models import Settings

ENV_PREFIX = "UPTERM_ACTION_"


def deep_merge(
    base: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    override: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Deep merge two settings dictionaries.

    Merges `override` into `base`, returning a new dictionary. Neither input
    is modified. Nested dictionaries are merged recursively; any other value
    in `override` replaces the one in `base`.
    """
    result: dict[str, Any] = dict(base)  # pyright: ignore[reportExplicitAny]

    for key, override_val in override.items():
        base_val = result.get(key)
        if isinstance(base_val, dict) and isinstance(override_val, dict):
            result[key] = deep_merge(base_val, override_val)
        else:
            result[key] = override_val

    return result


def set_nested_key(
    data: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    dotted_key: str,
    value: Any,  # pyright: ignore[reportExplicitAny]
) -> None:
    """Set a value in a nested dictionary using a dotted key path.

    Intermediate dictionaries are created as needed.
    """
    parts = dotted_key.split(".")
    current = data
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = value


def _parse_env_value(value: str) -> Any:  # pyright: ignore[reportExplicitAny]
    """Coerce a raw UPTERM_ACTION_* value.

    `true`/`false` (any case) become booleans and numeric text becomes an
    int or float; anything else stays a string.
    Pydantic validates the result against the Settings model afterwards.
    """
    lower_value = value.lower()
    if lower_value in ("true", "false"):
        return lower_value == "true"

    try:
        return int(value)
    except ValueError:
        pass

    if "." in value:
        try:
            return float(value)
        except ValueError:
            pass

    return value


def parse_env_vars(
    environ: Mapping[str, str] | None = None,
    prefix: str = ENV_PREFIX,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Parse environment variables into a settings dictionary.

    Args:
        environ: Environment mapping; defaults to os.environ.
        prefix: Environment variable prefix (default: "UPTERM_ACTION_").

    Returns:
        Dictionary of parsed settings values with nested structure.

    Environment variable naming:
        - Add prefix (UPTERM_ACTION_)
        - Convert to uppercase
        - Replace dots with double underscores
        - Example: logging.level -> UPTERM_ACTION_LOGGING__LEVEL
    """
    env = os.environ if environ is None else environ
    result: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]

    for key, value in env.items():
        if not key.startswith(prefix):
            continue

        settings_key = key[len(prefix) :]
        if not settings_key:
            continue

        settings_path = settings_key.replace("__", ".").lower()
        set_nested_key(result, settings_path, _parse_env_value(value))

    return result


def load_settings(
    environ: Mapping[str, str] | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,  # pyright: ignore[reportExplicitAny]
) -> Settings:
    """Load controller settings.

    Precedence, highest first: CLI overrides (dotted keys), UPTERM_ACTION_*
    environment variables, model defaults.

    Args:
        environ: Environment mapping; defaults to os.environ.
        overrides: Dotted-key overrides, e.g. {"logging.level": "debug"}.
            None values are ignored.

    Returns:
        The validated Settings.

    Raises:
        SettingsError: If a value fails validation.
    """
    values = parse_env_vars(environ)

    cli_values: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    for dotted_key, value in (overrides or {}).items():
        if value is not None:
            set_nested_key(cli_values, dotted_key, value)
    values = deep_merge(values, cli_values)

    try:
        return Settings.model_validate(values)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first["loc"])
        msg = f"Invalid setting {key}: {first['msg']}"
        raise SettingsError(msg, key=key) from e
