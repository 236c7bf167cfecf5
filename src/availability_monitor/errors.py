"""Exception hierarchy for the availability monitor.

Every failure that crosses a component boundary is a ``MonitorError`` tagged
with an ``ErrorKind`` so the orchestrator can report it without inspecting
exception types.

Exception classes support two patterns:
1. No-argument raise: raise NetworkError()
2. Contextual attributes: err = NetworkError("boom", url="https://..."); raise err
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """Category attached to every recorded failure."""

    VALIDATION = "validation"
    NETWORK = "network"
    TIMEOUT = "timeout"
    NOTIFY = "notify"
    CIRCUIT_OPEN = "circuit_open"
    LOCK_TIMEOUT = "lock_timeout"
    PERSISTENCE = "persistence"
    SHUTDOWN = "shutdown"
    APPLICATION = "application"


class MonitorError(Exception):
    """Base exception for all monitor errors.

    Keyword arguments become the ``context`` mapping and are also exposed as
    attributes for debugging.
    """

    kind: ErrorKind = ErrorKind.APPLICATION
    retryable: bool = False

    def __init__(self, message: str = "", *, retryable: Optional[bool] = None, **kwargs: Any) -> None:
        if not message:
            message = self.__class__.__doc__ or "Monitor error occurred"
        super().__init__(message)
        if retryable is not None:
            self.retryable = retryable
        self.context: Dict[str, Any] = dict(kwargs)
        self.attempts: Optional[int] = None
        for key, value in kwargs.items():
            setattr(self, key, value)


class ValidationError(MonitorError):
    """Input or response validation failed."""

    kind = ErrorKind.VALIDATION


class NetworkError(MonitorError):
    """Network communication error."""

    kind = ErrorKind.NETWORK
    retryable = True


class OperationTimeoutError(MonitorError):
    """Operation exceeded its deadline."""

    kind = ErrorKind.TIMEOUT
    retryable = True


class NotifyError(MonitorError):
    """Notification delivery failed."""

    kind = ErrorKind.NOTIFY


class CircuitOpenError(NotifyError):
    """Circuit breaker is open; call rejected without reaching the downstream."""

    kind = ErrorKind.CIRCUIT_OPEN
    retryable = False

    def __init__(self, message: str = "", *, next_attempt_at: Optional[float] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.next_attempt_at = next_attempt_at


class LockTimeoutError(MonitorError):
    """State lock could not be acquired in time."""

    kind = ErrorKind.LOCK_TIMEOUT


class PersistenceError(MonitorError):
    """Writing to or reading from local storage failed."""

    kind = ErrorKind.PERSISTENCE


class ShutdownInProgressError(MonitorError):
    """Monitor is shutting down and no longer accepts work."""

    kind = ErrorKind.SHUTDOWN


__all__ = [
    "CircuitOpenError",
    "ErrorKind",
    "LockTimeoutError",
    "MonitorError",
    "NetworkError",
    "NotifyError",
    "OperationTimeoutError",
    "PersistenceError",
    "ShutdownInProgressError",
    "ValidationError",
]
