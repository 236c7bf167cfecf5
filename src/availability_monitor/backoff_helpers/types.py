"""Retry policy definitions."""

from dataclasses import dataclass

from ..errors import ValidationError

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_SECONDS = 2.0
DEFAULT_MAX_DELAY_SECONDS = 8.0
DEFAULT_BACKOFF_FACTOR = 2.0


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for exponential backoff between attempts"""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS
    max_delay: float = DEFAULT_MAX_DELAY_SECONDS
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
    jitter_range: float = 0.0  # fraction of the delay, 0 disables jitter

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValidationError(f"max_attempts must be >= 1 (got {self.max_attempts})", field="max_attempts")
        if self.base_delay < 0:
            raise ValidationError(f"base_delay must be non-negative (got {self.base_delay})", field="base_delay")
        if self.base_delay > self.max_delay:
            raise ValidationError(
                f"base_delay ({self.base_delay}) must not exceed max_delay ({self.max_delay})",
                field="base_delay",
            )
        if self.backoff_factor < 1:
            raise ValidationError(f"backoff_factor must be >= 1 (got {self.backoff_factor})", field="backoff_factor")
        if not 0 <= self.jitter_range < 1:
            raise ValidationError(f"jitter_range must be in [0, 1) (got {self.jitter_range})", field="jitter_range")


# Retry profiles used by the monitor when nothing else is configured
CHECK_RETRY_POLICY = RetryPolicy()
NOTIFY_RETRY_POLICY = RetryPolicy(max_attempts=2, base_delay=1.0, max_delay=4.0)
