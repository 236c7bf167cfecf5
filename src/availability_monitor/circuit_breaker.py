"""Circuit breaker guarding calls to an unreliable downstream."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar

from .circuit_breaker_helpers import CircuitBreakerStatus, CircuitState
from .errors import CircuitOpenError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_FAILURE_THRESHOLD = 5
DEFAULT_COOLDOWN_SECONDS = 300.0


class CircuitBreaker:
    """
    Three-state breaker: Closed, Open, HalfOpen.

    Closed lets calls through and counts consecutive failures. Reaching the
    threshold opens the breaker; while Open, calls fail fast with
    ``CircuitOpenError``. After the cooldown the next call becomes the single
    HalfOpen probe whose outcome closes or re-opens the breaker.

    Transitions are serialized by an ``asyncio.Lock``; the guarded operation
    itself runs outside the lock.
    """

    def __init__(
        self,
        name: str,
        *,
        threshold: int = DEFAULT_FAILURE_THRESHOLD,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if threshold < 1:
            raise ValidationError(f"threshold must be >= 1 (got {threshold})", field="threshold")
        if cooldown_seconds < 0:
            raise ValidationError(f"cooldown_seconds must be non-negative (got {cooldown_seconds})", field="cooldown_seconds")
        self.name = name
        self.threshold = threshold
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._lock = asyncio.Lock()

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None
        self._probe_in_flight = False

        self._success_count = 0
        self._total_calls = 0
        self._rejected_calls = 0

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def is_open(self) -> bool:
        """True while calls are being rejected (Open before cooldown, or a probe is in flight)."""
        if self._state is CircuitState.OPEN:
            return not self._cooldown_elapsed()
        return self._state is CircuitState.HALF_OPEN and self._probe_in_flight

    def next_attempt_at(self) -> Optional[float]:
        if self._state is CircuitState.OPEN and self._opened_at is not None:
            return self._opened_at + self.cooldown_seconds
        return None

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``operation`` through the breaker.

        Returns:
            The operation's result

        Raises:
            CircuitOpenError: If the call was rejected without running
            Exception: The operation's own failure, after it has been counted
        """
        is_probe = await self._admit()
        try:
            result = await operation()
        except asyncio.CancelledError:
            if is_probe:
                async with self._lock:
                    self._probe_in_flight = False
            raise
        except Exception as exc:
            async with self._lock:
                self._record_failure(exc, is_probe)
            raise

        async with self._lock:
            self._record_success(is_probe)
        return result

    def get_status(self) -> CircuitBreakerStatus:
        return CircuitBreakerStatus(
            name=self.name,
            state=self._state,
            failure_count=self._failure_count,
            threshold=self.threshold,
            cooldown_seconds=self.cooldown_seconds,
            opened_at=self._opened_at,
            next_attempt_at=self.next_attempt_at(),
            success_count=self._success_count,
            total_calls=self._total_calls,
            rejected_calls=self._rejected_calls,
        )

    async def reset(self) -> None:
        """Force the breaker closed, e.g. after an operator intervention."""
        async with self._lock:
            if self._state is not CircuitState.CLOSED:
                logger.info("Circuit breaker %s manually reset to closed", self.name)
            self._close()

    async def _admit(self) -> bool:
        async with self._lock:
            self._total_calls += 1

            if self._state is CircuitState.OPEN:
                if not self._cooldown_elapsed():
                    self._reject("open")
                self._state = CircuitState.HALF_OPEN
                logger.info("Circuit breaker %s half-open; admitting probe call", self.name)

            if self._state is CircuitState.HALF_OPEN:
                if self._probe_in_flight:
                    self._reject("half-open probe already in flight")
                self._probe_in_flight = True
                return True

            return False

    def _reject(self, reason: str) -> None:
        self._rejected_calls += 1
        next_attempt = self.next_attempt_at()
        logger.debug("Circuit breaker %s rejected call (%s)", self.name, reason)
        raise CircuitOpenError(
            f"Circuit breaker {self.name} is {reason}",
            next_attempt_at=next_attempt,
            breaker=self.name,
        )

    def _record_success(self, is_probe: bool) -> None:
        self._success_count += 1
        if is_probe:
            logger.info("Circuit breaker %s probe succeeded; closing", self.name)
            self._close()
            return
        if self._state is CircuitState.CLOSED:
            self._failure_count = 0

    def _record_failure(self, exc: Exception, is_probe: bool) -> None:
        self._failure_count += 1
        if is_probe:
            self._probe_in_flight = False
            self._open()
            logger.warning("Circuit breaker %s probe failed (%s); re-opened for %.0fs", self.name, exc, self.cooldown_seconds)
            return

        if self._state is CircuitState.CLOSED and self._failure_count >= self.threshold:
            self._open()
            logger.error(
                "Circuit breaker %s opened after %s consecutive failures; cooling down for %.0fs",
                self.name,
                self._failure_count,
                self.cooldown_seconds,
            )

    def _open(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()

    def _close(self) -> None:
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at = None
        self._probe_in_flight = False

    def _cooldown_elapsed(self) -> bool:
        if self._opened_at is None:
            return True
        return self._clock() - self._opened_at >= self.cooldown_seconds


__all__ = [
    "CircuitBreaker",
    "CircuitBreakerStatus",
    "CircuitState",
    "DEFAULT_COOLDOWN_SECONDS",
    "DEFAULT_FAILURE_THRESHOLD",
]
