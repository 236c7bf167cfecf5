"""Delay calculation helpers for retry backoff."""

import logging
import random

from .types import RetryPolicy

logger = logging.getLogger(__name__)


class DelayCalculator:
    """Calculates backoff delays with optional jitter."""

    @staticmethod
    def calculate_base_delay(policy: RetryPolicy, attempt: int) -> float:
        """
        Calculate base exponential backoff delay.

        Args:
            policy: Retry policy
            attempt: 1-based number of the attempt that just failed

        Returns:
            Delay in seconds before the next attempt
        """
        return min(policy.base_delay * (policy.backoff_factor ** (attempt - 1)), policy.max_delay)

    @staticmethod
    def apply_jitter(base_delay: float, jitter_range: float) -> float:
        """
        Spread retries so concurrent failures do not line up.

        Args:
            base_delay: Base delay
            jitter_range: Jitter range as fraction of base delay

        Returns:
            Delay with jitter applied, never negative
        """
        if jitter_range <= 0:
            return base_delay
        jitter_amount = base_delay * jitter_range
        return max(0.0, base_delay + random.uniform(-jitter_amount, jitter_amount))

    @classmethod
    def calculate_delay(cls, policy: RetryPolicy, attempt: int) -> float:
        base_delay = cls.calculate_base_delay(policy, attempt)
        final_delay = cls.apply_jitter(base_delay, policy.jitter_range)
        logger.debug("Calculated backoff: attempt=%s, base_delay=%.2fs, final_delay=%.2fs", attempt, base_delay, final_delay)
        return final_delay
