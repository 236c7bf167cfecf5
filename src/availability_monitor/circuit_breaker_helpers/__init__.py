"""Circuit breaker data types."""

from .types import CircuitBreakerStatus, CircuitState

__all__ = ["CircuitBreakerStatus", "CircuitState"]
