"""Data types for the deferred delivery queue."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class QueueEntry:
    """A payload waiting for redelivery"""

    entry_id: str
    payload: Any
    enqueued_at: float
    next_attempt_at: float
    attempt_count: int = 0
    last_error: Optional[str] = None

    def is_due(self, now: float) -> bool:
        return self.next_attempt_at <= now

    def summary(self) -> Dict[str, Any]:
        return {
            "entry_id": self.entry_id,
            "enqueued_at": self.enqueued_at,
            "next_attempt_at": self.next_attempt_at,
            "attempt_count": self.attempt_count,
            "last_error": self.last_error,
        }


@dataclass(frozen=True)
class EnqueueResult:
    accepted: bool
    entry_id: Optional[str]
    queue_size: int
    reason: Optional[str] = None


@dataclass(frozen=True)
class DroppedEntry:
    entry: QueueEntry
    error: BaseException


@dataclass
class ProcessResult:
    """Outcome of a single drain pass"""

    delivered: List[str] = field(default_factory=list)
    rescheduled: List[str] = field(default_factory=list)
    dropped: List[DroppedEntry] = field(default_factory=list)
    skipped: bool = False

    @property
    def attempted(self) -> int:
        return len(self.delivered) + len(self.rescheduled) + len(self.dropped)


@dataclass(frozen=True)
class QueueStatus:
    name: str
    size: int
    capacity: int
    total_enqueued: int
    total_rejected: int
    total_delivered: int
    total_dropped: int
    entries: tuple[Dict[str, Any], ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "size": self.size,
            "capacity": self.capacity,
            "total_enqueued": self.total_enqueued,
            "total_rejected": self.total_rejected,
            "total_delivered": self.total_delivered,
            "total_dropped": self.total_dropped,
            "entries": list(self.entries),
        }
