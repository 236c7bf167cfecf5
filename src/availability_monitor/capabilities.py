"""
Interfaces of the monitor's collaborators and the records exchanged with them.

The orchestrator only depends on these protocols; concrete adapters live in
``checkers`` and ``notifiers`` and tests supply in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol


class AvailabilityStatus(Enum):
    """Observed availability of the target resource"""

    UNKNOWN = "unknown"
    UNAVAILABLE = "unavailable"
    AVAILABLE = "available"


@dataclass(frozen=True)
class CheckResult:
    status: AvailabilityStatus
    timestamp: float
    detail: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AlertContext:
    target_name: str
    target_url: str
    previous_status: AvailabilityStatus
    new_status: AvailabilityStatus
    observed_at: float
    detail: str = ""


@dataclass(frozen=True)
class SummaryStats:
    """Aggregate of one calendar day of checks."""

    date: date
    target_name: str
    window_start: float
    window_end: float
    total_checks: int
    available_count: int
    unavailable_count: int
    failed_count: int
    status_changes: int
    last_status: AvailabilityStatus
    error_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        if self.total_checks == 0:
            return 0.0
        return (self.total_checks - self.failed_count) / self.total_checks


@dataclass(frozen=True)
class DeliveryReceipt:
    message_id: Optional[str]
    delivered_to: tuple[str, ...] = ()


@dataclass(frozen=True)
class CheckRecord:
    """One persisted check outcome."""

    timestamp: float
    status: AvailabilityStatus
    success: bool
    previous_status: AvailabilityStatus = AvailabilityStatus.UNKNOWN
    status_changed: bool = False
    notification_sent: bool = False
    notification_queued: bool = False
    detail: str = ""
    error_kind: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "status": self.status.value,
            "success": self.success,
            "previous_status": self.previous_status.value,
            "status_changed": self.status_changed,
            "notification_sent": self.notification_sent,
            "notification_queued": self.notification_queued,
            "detail": self.detail,
            "error_kind": self.error_kind,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "CheckRecord":
        return cls(
            timestamp=float(payload["timestamp"]),
            status=AvailabilityStatus(payload["status"]),
            success=bool(payload["success"]),
            previous_status=AvailabilityStatus(payload.get("previous_status", AvailabilityStatus.UNKNOWN.value)),
            status_changed=bool(payload.get("status_changed", False)),
            notification_sent=bool(payload.get("notification_sent", False)),
            notification_queued=bool(payload.get("notification_queued", False)),
            detail=str(payload.get("detail", "")),
            error_kind=payload.get("error_kind"),
            error=payload.get("error"),
        )


class Checker(Protocol):
    async def check(self, target: str) -> CheckResult: ...


class Notifier(Protocol):
    async def send_alert(self, context: AlertContext) -> DeliveryReceipt: ...

    async def send_summary(self, stats: SummaryStats) -> DeliveryReceipt: ...


class CheckLog(Protocol):
    async def append(self, record: CheckRecord) -> None: ...

    async def get_all(self) -> List[CheckRecord]: ...

    async def get_since(self, timestamp: float) -> List[CheckRecord]: ...


__all__ = [
    "AlertContext",
    "AvailabilityStatus",
    "CheckLog",
    "CheckRecord",
    "CheckResult",
    "Checker",
    "DeliveryReceipt",
    "Notifier",
    "SummaryStats",
]
