"""Lock-guarded owner of the monitor's mutable state."""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass, replace
from datetime import date
from typing import Any, AsyncIterator, Callable, Dict, Optional

from .capabilities import AvailabilityStatus
from .errors import LockTimeoutError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class MonitoringState:
    """Snapshot of everything the monitor remembers between ticks"""

    last_observed_status: AvailabilityStatus = AvailabilityStatus.UNKNOWN
    last_check_timestamp: Optional[float] = None
    in_progress: bool = False
    consecutive_failures: int = 0
    error_count: int = 0
    last_error_timestamp: Optional[float] = None
    daily_summary_sent_for: Optional[date] = None
    check_count: int = 0
    last_state_update: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["last_observed_status"] = self.last_observed_status.value
        payload["daily_summary_sent_for"] = self.daily_summary_sent_for.isoformat() if self.daily_summary_sent_for else None
        return payload


Mutator = Callable[[MonitoringState], MonitoringState]


class StateStore:
    """
    Holds the single MonitoringState and the lock that serializes check ticks.

    ``update`` applies a synchronous pure mutator, so each update is atomic on
    the event loop without taking the lock. The lock guards read-modify-write
    sequences that span awaits (a whole check tick).
    """

    def __init__(
        self,
        initial: Optional[MonitoringState] = None,
        *,
        default_lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._state = initial or MonitoringState()
        self._lock = asyncio.Lock()
        self._clock = clock
        self.default_lock_timeout = default_lock_timeout

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    async def acquire_lock(self, timeout: Optional[float] = None) -> bool:
        """
        Try to take the state lock.

        Args:
            timeout: Seconds to wait, defaults to ``default_lock_timeout``

        Returns:
            True if the lock is now held, False if the wait timed out
        """
        wait = self.default_lock_timeout if timeout is None else timeout
        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=wait)
        except asyncio.TimeoutError:
            logger.warning("State lock not acquired within %.1fs", wait)
            return False
        return True

    def release_lock(self) -> None:
        self._lock.release()

    @asynccontextmanager
    async def hold(self, timeout: Optional[float] = None) -> AsyncIterator[MonitoringState]:
        """
        Hold the lock for the duration of the block.

        Raises:
            LockTimeoutError: If the lock could not be acquired in time
        """
        wait = self.default_lock_timeout if timeout is None else timeout
        if not await self.acquire_lock(wait):
            raise LockTimeoutError(f"State lock not acquired within {wait:.1f}s", timeout=wait)
        try:
            yield self._state
        finally:
            self.release_lock()

    def read(self) -> MonitoringState:
        return self._state

    def update(self, mutator: Mutator) -> MonitoringState:
        """
        Replace the state with ``mutator(current)``.

        If the mutator raises, the state is left untouched and the error propagates.
        """
        candidate = mutator(self._state)
        if not isinstance(candidate, MonitoringState):
            raise ValidationError(f"State mutator returned {type(candidate).__name__}, expected MonitoringState")
        self._state = replace(candidate, last_state_update=self._clock())
        return self._state

    def reset(self, initial: Optional[MonitoringState] = None) -> MonitoringState:
        self._state = initial or MonitoringState()
        return self._state


__all__ = ["AvailabilityStatus", "DEFAULT_LOCK_TIMEOUT_SECONDS", "MonitoringState", "Mutator", "StateStore"]
