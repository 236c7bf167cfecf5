from __future__ import annotations

"""Monitor configuration dataclasses resolved from the environment."""


from dataclasses import dataclass
from datetime import time as dt_time
from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigurationError
from .runtime import env_bool, env_clock_time, env_float, env_int, env_list, env_path, env_seconds, env_str

DEFAULT_AVAILABLE_MARKER = "add-to-cart-btn"


@dataclass(frozen=True)
class RetrySettings:
    max_attempts: int
    base_delay: float
    max_delay: float
    backoff_factor: float


@dataclass(frozen=True)
class BreakerSettings:
    threshold: int
    cooldown_seconds: float


@dataclass(frozen=True)
class QueueSettings:
    capacity: int
    max_redeliveries: int
    redelivery_delay_seconds: float
    drain_interval_seconds: float


@dataclass(frozen=True)
class TelegramSettings:
    bot_token: str
    chat_ids: tuple[str, ...]
    timeout_seconds: float


@dataclass(frozen=True)
class MonitorSettings:
    target_url: str
    target_name: str
    available_marker: str
    http_timeout_seconds: float
    check_interval_seconds: float
    summary_time: dt_time
    summary_timezone: str
    summary_poll_seconds: float
    lock_timeout_seconds: float
    retry: RetrySettings
    breaker: BreakerSettings
    queue: QueueSettings
    log_dir: Path
    data_dir: Path
    log_max_bytes: int
    log_retention_days: int
    health_probe_timeout_seconds: float
    shutdown_grace_seconds: float
    alert_on_first_check: bool
    telegram: Optional[TelegramSettings]

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.summary_timezone)

    def require_telegram(self) -> TelegramSettings:
        if self.telegram is None:
            raise ConfigurationError.missing_variable("TELEGRAM_BOT_TOKEN", "notifications need a Telegram bot; use --dry-run to log them instead")
        return self.telegram


def _load_retry_settings() -> RetrySettings:
    base_delay = env_seconds("MONITOR_RETRY_BASE_DELAY", 2.0)
    max_delay = env_seconds("MONITOR_RETRY_MAX_DELAY", 8.0)
    if base_delay > max_delay:
        raise ConfigurationError.out_of_range("MONITOR_RETRY_BASE_DELAY", base_delay, f"<= MONITOR_RETRY_MAX_DELAY ({max_delay})")
    return RetrySettings(
        max_attempts=env_int("MONITOR_RETRY_MAX_ATTEMPTS", 3, minimum=1),
        base_delay=base_delay,
        max_delay=max_delay,
        backoff_factor=env_float("MONITOR_RETRY_BACKOFF_FACTOR", 2.0, minimum=1.0),
    )


def _load_telegram_settings() -> Optional[TelegramSettings]:
    token = env_str("TELEGRAM_BOT_TOKEN")
    chat_ids = env_list("TELEGRAM_CHAT_IDS")
    if not token and not chat_ids:
        return None
    if not token:
        raise ConfigurationError.incomplete_telegram("TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_IDS")
    if not chat_ids:
        raise ConfigurationError.incomplete_telegram("TELEGRAM_CHAT_IDS", "TELEGRAM_BOT_TOKEN")
    return TelegramSettings(
        bot_token=token,
        chat_ids=chat_ids,
        timeout_seconds=env_seconds("TELEGRAM_TIMEOUT_SECONDS", 10.0),
    )


def load_monitor_settings() -> MonitorSettings:
    """Resolve settings from the environment without caching."""

    timezone_name = env_str("MONITOR_SUMMARY_TIMEZONE", "UTC")
    try:
        ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError.unknown_timezone("MONITOR_SUMMARY_TIMEZONE", timezone_name) from exc

    return MonitorSettings(
        target_url=env_str("MONITOR_TARGET_URL", required=True),
        target_name=env_str("MONITOR_TARGET_NAME", "target"),
        available_marker=env_str("MONITOR_AVAILABLE_MARKER", DEFAULT_AVAILABLE_MARKER),
        http_timeout_seconds=env_seconds("MONITOR_HTTP_TIMEOUT_SECONDS", 15.0),
        check_interval_seconds=env_seconds("MONITOR_CHECK_INTERVAL_SECONDS", 1800.0),
        summary_time=env_clock_time("MONITOR_SUMMARY_TIME", "00:00"),
        summary_timezone=timezone_name,
        summary_poll_seconds=env_seconds("MONITOR_SUMMARY_POLL_SECONDS", 300.0),
        lock_timeout_seconds=env_seconds("MONITOR_LOCK_TIMEOUT_SECONDS", 5.0),
        retry=_load_retry_settings(),
        breaker=BreakerSettings(
            threshold=env_int("MONITOR_BREAKER_THRESHOLD", 5, minimum=1),
            cooldown_seconds=env_seconds("MONITOR_BREAKER_COOLDOWN_SECONDS", 300.0),
        ),
        queue=QueueSettings(
            capacity=env_int("MONITOR_QUEUE_CAPACITY", 50, minimum=1),
            max_redeliveries=env_int("MONITOR_QUEUE_MAX_REDELIVERIES", 3, minimum=1),
            redelivery_delay_seconds=env_seconds("MONITOR_QUEUE_REDELIVERY_DELAY_SECONDS", 300.0),
            drain_interval_seconds=env_seconds("MONITOR_QUEUE_DRAIN_INTERVAL_SECONDS", 60.0),
        ),
        log_dir=env_path("MONITOR_LOG_DIR", "./logs"),
        data_dir=env_path("MONITOR_DATA_DIR", "./data"),
        log_max_bytes=env_int("MONITOR_LOG_MAX_BYTES", 10 * 1024 * 1024, minimum=1),
        log_retention_days=env_int("MONITOR_LOG_RETENTION_DAYS", 30, minimum=0),
        health_probe_timeout_seconds=env_seconds("MONITOR_HEALTH_PROBE_TIMEOUT_SECONDS", 5.0),
        shutdown_grace_seconds=env_seconds("MONITOR_SHUTDOWN_GRACE_SECONDS", 30.0),
        alert_on_first_check=bool(env_bool("MONITOR_ALERT_ON_FIRST_CHECK", False)),
        telegram=_load_telegram_settings(),
    )


@lru_cache(maxsize=1)
def get_monitor_settings() -> MonitorSettings:
    return load_monitor_settings()


__all__ = [
    "BreakerSettings",
    "MonitorSettings",
    "QueueSettings",
    "RetrySettings",
    "TelegramSettings",
    "get_monitor_settings",
    "load_monitor_settings",
]
