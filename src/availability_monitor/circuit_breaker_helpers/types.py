"""Data types for the circuit breaker."""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional


class CircuitState(Enum):
    """Breaker position"""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitBreakerStatus:
    """Point-in-time view of a breaker"""

    name: str
    state: CircuitState
    failure_count: int
    threshold: int
    cooldown_seconds: float
    opened_at: Optional[float]
    next_attempt_at: Optional[float]
    success_count: int
    total_calls: int
    rejected_calls: int

    @property
    def failure_rate(self) -> float:
        attempted = self.total_calls - self.rejected_calls
        if attempted <= 0:
            return 0.0
        return (attempted - self.success_count) / attempted

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["state"] = self.state.value
        payload["failure_rate"] = round(self.failure_rate, 4)
        return payload
