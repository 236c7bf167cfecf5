"""Retry wrapper for fallible async operations with exponential backoff."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from .backoff_helpers import CHECK_RETRY_POLICY, DelayCalculator, RetryPolicy
from .error_classifier import classify_error, is_retryable

logger = logging.getLogger(__name__)

T = TypeVar("T")
SleepFn = Callable[[float], Awaitable[Any]]


class RetryExecutor:
    """Runs an operation until it succeeds, fails fatally, or exhausts its policy.

    The sleep function is injectable so tests can observe delays without waiting.
    """

    def __init__(self, default_policy: Optional[RetryPolicy] = None, *, sleep: Optional[SleepFn] = None) -> None:
        self.default_policy = default_policy or CHECK_RETRY_POLICY
        self._sleep: SleepFn = sleep or asyncio.sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: Optional[RetryPolicy] = None,
        *,
        context: str = "operation",
        category: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> T:
        """
        Await ``operation()`` until it succeeds or the policy is exhausted.

        Args:
            operation: Zero-argument coroutine factory; called once per attempt
            policy: Retry policy, defaults to the executor's policy
            context: Human readable label used in log lines
            category: Optional category label for log lines
            metadata: Extra key/value pairs included in log lines

        Returns:
            The operation's result

        Raises:
            Exception: The last error raised by the operation, with ``attempts``
                set to the number of calls made
        """
        active_policy = policy or self.default_policy
        extra = f" {metadata}" if metadata else ""

        attempt = 0
        while True:
            attempt += 1
            try:
                result = await operation()
            except Exception as exc:
                kind = classify_error(exc)
                label = category or kind.value
                retryable = is_retryable(exc)
                final = not retryable or attempt >= active_policy.max_attempts
                logger.warning(
                    "[%s] %s failed on attempt %s/%s: %s%s",
                    label,
                    context,
                    attempt,
                    active_policy.max_attempts,
                    exc,
                    extra,
                )
                if final:
                    _annotate(exc, attempt, retryable)
                    if retryable:
                        logger.error("[%s] %s failed after %s attempts", label, context, attempt)
                    raise

                delay = DelayCalculator.calculate_delay(active_policy, attempt)
                logger.info("[%s] Retrying %s in %.2fs", label, context, delay)
                await self._sleep(delay)
                continue

            if attempt > 1:
                logger.info("%s succeeded on attempt %s", context, attempt)
            return result


def _annotate(exc: Exception, attempts: int, retryable: bool) -> None:
    exc.attempts = attempts  # type: ignore[attr-defined]
    reason = "retries exhausted" if retryable else "fatal, not retried"
    exc.add_note(f"attempts={attempts} ({reason})")


__all__ = ["RetryExecutor", "SleepFn"]
