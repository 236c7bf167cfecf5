"""Bounded queue of payloads whose delivery failed and must be retried later."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar

from .backoff_helpers import DelayCalculator, RetryPolicy
from .deferred_queue_helpers import DroppedEntry, EnqueueResult, ProcessResult, QueueEntry, QueueStatus
from .errors import CircuitOpenError, ValidationError

logger = logging.getLogger(__name__)

P = TypeVar("P")

DEFAULT_MAX_CAPACITY = 50
DEFAULT_MAX_REDELIVERIES = 3
DEFAULT_REDELIVERY_DELAY_SECONDS = 300.0


class DeferredQueue(Generic[P]):
    """
    Holds undelivered payloads and redelivers them on a schedule.

    ``enqueue`` never awaits, so callers holding the state lock are never
    blocked by redelivery. When full, new entries are rejected; queued entries
    are never evicted to make room. ``process_due`` is meant to be driven by a
    single periodic consumer.
    """

    def __init__(
        self,
        deliver: Callable[[P], Awaitable[Any]],
        *,
        name: str = "deferred",
        max_capacity: int = DEFAULT_MAX_CAPACITY,
        max_redeliveries: int = DEFAULT_MAX_REDELIVERIES,
        redelivery_delay: float = DEFAULT_REDELIVERY_DELAY_SECONDS,
        max_redelivery_delay: Optional[float] = None,
        initial_delay: float = 0.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_capacity < 1:
            raise ValidationError(f"max_capacity must be >= 1 (got {max_capacity})", field="max_capacity")
        if max_redeliveries < 1:
            raise ValidationError(f"max_redeliveries must be >= 1 (got {max_redeliveries})", field="max_redeliveries")
        self.name = name
        self.max_capacity = max_capacity
        self.max_redeliveries = max_redeliveries
        self.initial_delay = initial_delay
        self._deliver = deliver
        self._clock = clock
        self._backoff = RetryPolicy(
            max_attempts=max_redeliveries,
            base_delay=redelivery_delay,
            max_delay=max_redelivery_delay if max_redelivery_delay is not None else redelivery_delay * 8,
        )

        self._entries: List[QueueEntry] = []
        self._processing = False
        self._total_enqueued = 0
        self._total_rejected = 0
        self._total_delivered = 0
        self._total_dropped = 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def is_full(self) -> bool:
        return len(self._entries) >= self.max_capacity

    def enqueue(self, payload: P) -> EnqueueResult:
        """Add a payload; rejected with a logged error when the queue is at capacity."""
        if self.is_full:
            self._total_rejected += 1
            logger.error(
                "Deferred queue %s full (%s/%s); rejecting new entry",
                self.name,
                len(self._entries),
                self.max_capacity,
            )
            return EnqueueResult(accepted=False, entry_id=None, queue_size=len(self._entries), reason="queue full")

        now = self._clock()
        entry = QueueEntry(
            entry_id=uuid.uuid4().hex,
            payload=payload,
            enqueued_at=now,
            next_attempt_at=now + self.initial_delay,
        )
        self._entries.append(entry)
        self._total_enqueued += 1
        logger.info("Queued %s for redelivery on %s (size %s/%s)", entry.entry_id, self.name, len(self._entries), self.max_capacity)
        return EnqueueResult(accepted=True, entry_id=entry.entry_id, queue_size=len(self._entries))

    async def process_due(self) -> ProcessResult:
        """
        Attempt delivery of every entry whose time has come.

        Returns:
            Which entries were delivered, rescheduled or dropped; ``skipped``
            when another pass is already running
        """
        if self._processing:
            logger.debug("Deferred queue %s already processing; skipping pass", self.name)
            return ProcessResult(skipped=True)

        result = ProcessResult()
        if not self._entries:
            return result

        self._processing = True
        try:
            due = [entry for entry in self._entries if entry.is_due(self._clock())]
            for entry in due:
                await self._attempt(entry, result)
        finally:
            self._processing = False

        if result.attempted:
            logger.info(
                "Deferred queue %s pass: %s delivered, %s rescheduled, %s dropped, %s remaining",
                self.name,
                len(result.delivered),
                len(result.rescheduled),
                len(result.dropped),
                len(self._entries),
            )
        return result

    async def _attempt(self, entry: QueueEntry, result: ProcessResult) -> None:
        try:
            await self._deliver(entry.payload)
        except CircuitOpenError as exc:
            # Rejected before reaching the downstream; the attempt is not spent
            now = self._clock()
            entry.next_attempt_at = exc.next_attempt_at if exc.next_attempt_at is not None else now + self._backoff.base_delay
            entry.last_error = str(exc)
            result.rescheduled.append(entry.entry_id)
            logger.debug("Entry %s deferred until breaker allows calls", entry.entry_id)
            return
        except Exception as exc:
            entry.attempt_count += 1
            entry.last_error = str(exc)
            if entry.attempt_count >= self.max_redeliveries:
                self._remove(entry)
                self._total_dropped += 1
                result.dropped.append(DroppedEntry(entry=entry, error=exc))
                logger.error(
                    "Dropping entry %s from %s after %s failed redeliveries: %s",
                    entry.entry_id,
                    self.name,
                    entry.attempt_count,
                    exc,
                )
                return
            delay = DelayCalculator.calculate_delay(self._backoff, entry.attempt_count)
            entry.next_attempt_at = self._clock() + delay
            result.rescheduled.append(entry.entry_id)
            logger.warning(
                "Redelivery of %s failed (attempt %s/%s); next try in %.0fs: %s",
                entry.entry_id,
                entry.attempt_count,
                self.max_redeliveries,
                delay,
                exc,
            )
            return

        self._remove(entry)
        self._total_delivered += 1
        result.delivered.append(entry.entry_id)
        logger.info("Delivered queued entry %s from %s", entry.entry_id, self.name)

    def _remove(self, entry: QueueEntry) -> None:
        self._entries = [candidate for candidate in self._entries if candidate.entry_id != entry.entry_id]

    def entries(self) -> List[QueueEntry]:
        return list(self._entries)

    def get_status(self) -> QueueStatus:
        return QueueStatus(
            name=self.name,
            size=len(self._entries),
            capacity=self.max_capacity,
            total_enqueued=self._total_enqueued,
            total_rejected=self._total_rejected,
            total_delivered=self._total_delivered,
            total_dropped=self._total_dropped,
            entries=tuple(entry.summary() for entry in self._entries),
        )


__all__ = ["DEFAULT_MAX_CAPACITY", "DEFAULT_MAX_REDELIVERIES", "DEFAULT_REDELIVERY_DELAY_SECONDS", "DeferredQueue"]
