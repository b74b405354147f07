"""Stint configuration management.

Handles ~/.stint/config.json. Missing keys fall back to DEFAULTS.
"""

from pathlib import Path
from typing import Any

import orjson

from stint.core.notify import DEFAULT_NOTIFY_COMMAND
from stint.core.store import get_stint_base

DEFAULTS: dict[str, Any] = {
    "default_duration": 25 * 60,
    "tick_interval": 0.1,
    "notifications": True,
    "notify_command": DEFAULT_NOTIFY_COMMAND,
}


def get_config_path() -> Path:
    """Get the path to stint's config file."""
    return get_stint_base() / "config.json"


def read_config() -> dict:
    """Read stint config, returning empty dict if not found."""
    config_path = get_config_path()
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_bytes()
        config = orjson.loads(content) if content else {}
    except (orjson.JSONDecodeError, OSError):
        return {}
    return config if isinstance(config, dict) else {}


def write_config(config: dict) -> None:
    """Write stint config."""
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_bytes(orjson.dumps(config, option=orjson.OPT_INDENT_2))


def get_setting(key: str) -> Any:
    """Get a setting, falling back to its default.

    Raises:
        KeyError: If key is not a known setting.
    """
    if key not in DEFAULTS:
        raise KeyError(key)
    return read_config().get(key, DEFAULTS[key])


def set_setting(key: str, value: Any) -> None:
    """Set a setting after checking it against the default's type.

    Raises:
        KeyError: If key is not a known setting.
        ValueError: If value has the wrong type or is out of range.
    """
    if key not in DEFAULTS:
        raise KeyError(key)
    default = DEFAULTS[key]
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ValueError(f"{key} must be true or false")
    elif isinstance(default, (int, float)):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ValueError(f"{key} must be a positive number")
    elif isinstance(default, list):
        if not isinstance(value, list) or not value or not all(isinstance(v, str) for v in value):
            raise ValueError(f"{key} must be a non-empty list of strings")
    config = read_config()
    config[key] = value
    write_config(config)


def get_default_duration() -> float:
    """Default planned duration in seconds (25 minutes unless configured)."""
    return float(get_setting("default_duration"))


def get_tick_interval() -> float:
    """Seconds between display ticks in the TUI."""
    return float(get_setting("tick_interval"))
