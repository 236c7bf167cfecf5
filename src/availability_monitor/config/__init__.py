"""Environment-backed configuration for the monitor."""

from .errors import ConfigurationError
from .runtime import (
    env_bool,
    env_clock_time,
    env_float,
    env_int,
    env_list,
    env_path,
    env_seconds,
    env_str,
    reset_default_values,
)
from .settings import (
    BreakerSettings,
    MonitorSettings,
    QueueSettings,
    RetrySettings,
    TelegramSettings,
    get_monitor_settings,
    load_monitor_settings,
)

__all__ = [
    "BreakerSettings",
    "ConfigurationError",
    "MonitorSettings",
    "QueueSettings",
    "RetrySettings",
    "TelegramSettings",
    "env_bool",
    "env_clock_time",
    "env_float",
    "env_int",
    "env_list",
    "env_path",
    "env_seconds",
    "env_str",
    "get_monitor_settings",
    "load_monitor_settings",
    "reset_default_values",
]
