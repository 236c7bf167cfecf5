"""Retry policy and backoff delay helpers."""

from .delay_calculator import DelayCalculator
from .types import (
    CHECK_RETRY_POLICY,
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_BASE_DELAY_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_DELAY_SECONDS,
    NOTIFY_RETRY_POLICY,
    RetryPolicy,
)

__all__ = [
    "CHECK_RETRY_POLICY",
    "DEFAULT_BACKOFF_FACTOR",
    "DEFAULT_BASE_DELAY_SECONDS",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_MAX_DELAY_SECONDS",
    "DelayCalculator",
    "NOTIFY_RETRY_POLICY",
    "RetryPolicy",
]
