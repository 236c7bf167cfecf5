"""Tunables for the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time as dt_time, timezone, tzinfo
from pathlib import Path
from typing import Optional

from ..backoff_helpers import CHECK_RETRY_POLICY, NOTIFY_RETRY_POLICY, RetryPolicy
from ..circuit_breaker import DEFAULT_COOLDOWN_SECONDS, DEFAULT_FAILURE_THRESHOLD
from ..config import MonitorSettings
from ..deferred_queue import DEFAULT_MAX_CAPACITY, DEFAULT_MAX_REDELIVERIES, DEFAULT_REDELIVERY_DELAY_SECONDS
from ..health import DEFAULT_PROBE_TIMEOUT_SECONDS
from ..log_lifecycle import DEFAULT_RETENTION_DAYS
from ..state_store import DEFAULT_LOCK_TIMEOUT_SECONDS


@dataclass(frozen=True)
class OrchestratorConfig:
    target_url: str
    target_name: str = "target"
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS
    check_policy: RetryPolicy = CHECK_RETRY_POLICY
    notify_policy: RetryPolicy = NOTIFY_RETRY_POLICY
    breaker_threshold: int = DEFAULT_FAILURE_THRESHOLD
    breaker_cooldown: float = DEFAULT_COOLDOWN_SECONDS
    queue_capacity: int = DEFAULT_MAX_CAPACITY
    queue_max_redeliveries: int = DEFAULT_MAX_REDELIVERIES
    queue_redelivery_delay: float = DEFAULT_REDELIVERY_DELAY_SECONDS
    alert_on_first_check: bool = False
    summary_time: dt_time = dt_time(0, 0)
    tz: tzinfo = timezone.utc
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS
    log_retention_days: int = DEFAULT_RETENTION_DAYS
    error_summary_dir: Optional[Path] = None
    data_dir: Optional[Path] = None

    @classmethod
    def from_settings(cls, settings: MonitorSettings) -> "OrchestratorConfig":
        return cls(
            target_url=settings.target_url,
            target_name=settings.target_name,
            lock_timeout=settings.lock_timeout_seconds,
            check_policy=RetryPolicy(
                max_attempts=settings.retry.max_attempts,
                base_delay=settings.retry.base_delay,
                max_delay=settings.retry.max_delay,
                backoff_factor=settings.retry.backoff_factor,
            ),
            breaker_threshold=settings.breaker.threshold,
            breaker_cooldown=settings.breaker.cooldown_seconds,
            queue_capacity=settings.queue.capacity,
            queue_max_redeliveries=settings.queue.max_redeliveries,
            queue_redelivery_delay=settings.queue.redelivery_delay_seconds,
            alert_on_first_check=settings.alert_on_first_check,
            summary_time=settings.summary_time,
            tz=settings.tzinfo,
            probe_timeout=settings.health_probe_timeout_seconds,
            log_retention_days=settings.log_retention_days,
            error_summary_dir=settings.log_dir,
            data_dir=settings.data_dir,
        )
