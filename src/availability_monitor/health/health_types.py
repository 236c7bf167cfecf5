"""Data types for health aggregation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union


class ProbeStatus(Enum):
    """Outcome of a single probe"""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class OverallHealth(Enum):
    """Clear, non-contradictory aggregate status"""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True)
class ProbeOutcome:
    """What a probe function returns: pass/fail plus an optional detail message."""

    healthy: bool
    detail: str = ""
    data: Dict[str, Any] = field(default_factory=dict)


# A probe may return a ProbeOutcome, a bare bool, or raise to signal failure.
ProbeFn = Callable[[], Awaitable[Union[ProbeOutcome, bool, None]]]


@dataclass(frozen=True)
class RegisteredProbe:
    name: str
    probe: ProbeFn
    core: bool
    timeout: Optional[float]


@dataclass(frozen=True)
class ProbeResult:
    name: str
    status: ProbeStatus
    core: bool
    duration_ms: float
    detail: str = ""
    error: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def healthy(self) -> bool:
        return self.status is ProbeStatus.HEALTHY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "core": self.core,
            "duration_ms": round(self.duration_ms, 2),
            "detail": self.detail,
            "error": self.error,
            "data": dict(self.data),
        }


@dataclass(frozen=True)
class HealthReport:
    overall: OverallHealth
    probes: Dict[str, ProbeResult]
    checked_at: float

    @property
    def failing(self) -> list[str]:
        return [name for name, result in self.probes.items() if not result.healthy]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall.value,
            "checked_at": self.checked_at,
            "probes": {name: result.to_dict() for name, result in self.probes.items()},
        }
