from __future__ import annotations

"""Runtime helpers for working with environment-backed configuration."""


import os
from datetime import time as dt_time
from pathlib import Path
from typing import Optional, Sequence

from .dotenv_loader import DotenvLoader
from .errors import ConfigurationError

_TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "f", "no", "n", "off"}

_ENV_FILE_OVERRIDE = "MONITOR_ENV_FILE"
_DOTENV_CANDIDATES = (Path(".env"), Path.home() / ".availability_monitor.env")

_DEFAULT_VALUES: dict[str, str] | None = None


def _dotenv_paths() -> list[Path]:
    paths = list(_DOTENV_CANDIDATES)
    override = os.getenv(_ENV_FILE_OVERRIDE)
    if override:
        paths.insert(0, Path(override).expanduser())
    return paths


def _load_default_values() -> dict[str, str]:
    """Load fallback values from dotenv files (process environment wins)."""
    global _DEFAULT_VALUES
    if _DEFAULT_VALUES is None:
        _DEFAULT_VALUES = DotenvLoader.load_first_wins(_dotenv_paths())
    return _DEFAULT_VALUES


def reset_default_values() -> None:
    """Forget cached dotenv values so the next lookup re-reads them."""
    global _DEFAULT_VALUES
    _DEFAULT_VALUES = None


def _raw(name: str, *, strip: bool) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        value = _load_default_values().get(name)
    if value is None:
        return None
    value = value.strip() if strip else value
    return value or None


def _missing(name: str) -> ConfigurationError:
    return ConfigurationError.missing_variable(name, "required")


def env_str(name: str, or_value: str | None = None, *, required: bool = False, strip: bool = True) -> str | None:
    """Fetch an environment variable as a string."""

    value = _raw(name, strip=strip)
    if value is None:
        if required and or_value is None:
            raise _missing(name)
        return or_value
    return value


def env_int(name: str, or_value: int | None = None, *, required: bool = False, minimum: int | None = None) -> int | None:
    """Fetch an environment variable and coerce it to ``int``."""

    raw = _raw(name, strip=True)
    if raw is None:
        if required and or_value is None:
            raise _missing(name)
        return or_value
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError.unparseable(name, raw, "an integer") from exc
    if minimum is not None and value < minimum:
        raise ConfigurationError.out_of_range(name, value, f">= {minimum}")
    return value


def env_float(name: str, or_value: float | None = None, *, required: bool = False, minimum: float | None = None) -> float | None:
    """Fetch an environment variable and coerce it to ``float``."""

    raw = _raw(name, strip=True)
    if raw is None:
        if required and or_value is None:
            raise _missing(name)
        return or_value
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError.unparseable(name, raw, "a number") from exc
    if minimum is not None and value < minimum:
        raise ConfigurationError.out_of_range(name, value, f">= {minimum}")
    return value


def env_seconds(name: str, or_value: float | None = None, *, required: bool = False) -> float | None:
    """Convenience wrapper for durations stored as (possibly fractional) seconds."""

    return env_float(name, or_value, required=required, minimum=0.0)


def env_bool(name: str, or_value: bool | None = None, *, required: bool = False) -> bool | None:
    """Fetch an environment variable and coerce it to ``bool``."""

    raw = _raw(name, strip=True)
    if raw is None:
        if required and or_value is None:
            raise _missing(name)
        return or_value

    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError.unparseable(name, raw, "a boolean such as true/false")


def env_list(
    name: str,
    *,
    or_value: Sequence[str] | None = None,
    separator: str = ",",
    required: bool = False,
) -> tuple[str, ...]:
    """Fetch a delimited list from the environment, dropping blanks and duplicates."""

    raw = _raw(name, strip=True)
    items: list[str] = []
    if raw is not None:
        for part in raw.split(separator):
            candidate = part.strip()
            if candidate and candidate not in items:
                items.append(candidate)
    elif or_value:
        items = list(or_value)

    if not items and required:
        raise _missing(name)
    return tuple(items)


def env_clock_time(name: str, or_value: str = "00:00") -> dt_time:
    """Fetch an ``HH:MM`` wall-clock time."""

    raw = env_str(name, or_value)
    assert raw is not None
    try:
        hours, minutes = (int(part) for part in raw.split(":", 1))
        return dt_time(hour=hours, minute=minutes)
    except ValueError as exc:
        raise ConfigurationError.unparseable(name, raw, "an HH:MM time") from exc


def env_path(name: str, or_value: str) -> Path:
    """Fetch a filesystem path, expanding ``~``."""

    raw = env_str(name, or_value)
    assert raw is not None
    return Path(raw).expanduser()


__all__ = [
    "env_bool",
    "env_clock_time",
    "env_float",
    "env_int",
    "env_list",
    "env_path",
    "env_seconds",
    "env_str",
    "reset_default_values",
]
