"""Result types returned by orchestrator ticks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..capabilities import AvailabilityStatus
from ..circuit_breaker_helpers import CircuitBreakerStatus
from ..deferred_queue_helpers import QueueStatus
from ..errors import ErrorKind
from ..health import HealthReport
from ..state_store import MonitoringState


@dataclass(frozen=True)
class TickError:
    kind: ErrorKind
    message: str
    context: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: BaseException, kind: ErrorKind, **context: Any) -> "TickError":
        merged = dict(getattr(exc, "context", None) or {})
        merged.update(context)
        attempts = getattr(exc, "attempts", None)
        if attempts is not None:
            merged["attempts"] = attempts
        return cls(kind=kind, message=str(exc) or type(exc).__name__, context=merged)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "context": {key: str(value) for key, value in self.context.items()}}


@dataclass(frozen=True)
class CheckTickResult:
    timestamp: float
    success: bool
    previous_status: AvailabilityStatus
    new_status: AvailabilityStatus
    status_changed: bool = False
    notification_sent: bool = False
    notification_queued: bool = False
    was_blocked: bool = False
    skipped: bool = False
    errors: List[TickError] = field(default_factory=list)

    @property
    def error_kinds(self) -> List[ErrorKind]:
        return [error.kind for error in self.errors]


@dataclass(frozen=True)
class SummaryTickResult:
    success: bool
    date: Optional[date]
    due: bool = True
    already_sent: bool = False
    notification_sent: bool = False
    skipped: bool = False
    errors: List[TickError] = field(default_factory=list)


@dataclass(frozen=True)
class MaintenanceResult:
    rotated: List[Path]
    removed: List[Path]
    health: Optional[HealthReport]
    error_summary_path: Optional[Path]
    errors: List[TickError] = field(default_factory=list)


@dataclass(frozen=True)
class StatusReport:
    state: MonitoringState
    breaker: CircuitBreakerStatus
    queue: QueueStatus
    health: Optional[HealthReport]
    uptime_seconds: float
    accepting_ticks: bool
    errors_by_kind: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.to_dict(),
            "circuit_breaker": self.breaker.to_dict(),
            "deferred_queue": self.queue.to_dict(),
            "health": self.health.to_dict() if self.health else None,
            "uptime_seconds": round(self.uptime_seconds, 1),
            "accepting_ticks": self.accepting_ticks,
            "errors_by_kind": dict(self.errors_by_kind),
        }
