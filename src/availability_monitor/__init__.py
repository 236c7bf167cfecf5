"""Resilient availability monitor: checks a target, alerts on availability, survives failures."""

from .backoff_helpers import RetryPolicy
from .capabilities import AlertContext, AvailabilityStatus, CheckRecord, CheckResult, DeliveryReceipt, SummaryStats
from .circuit_breaker import CircuitBreaker, CircuitState
from .deferred_queue import DeferredQueue
from .errors import (
    CircuitOpenError,
    ErrorKind,
    LockTimeoutError,
    MonitorError,
    NetworkError,
    NotifyError,
    OperationTimeoutError,
    PersistenceError,
    ValidationError,
)
from .health import HealthAggregator, HealthReport, OverallHealth
from .log_lifecycle import LogLifecycleManager
from .orchestrator import Orchestrator
from .orchestrator_helpers import CheckTickResult, OrchestratorConfig, SummaryTickResult
from .retry_executor import RetryExecutor
from .state_store import MonitoringState, StateStore

__version__ = "0.1.0"

__all__ = [
    "AlertContext",
    "AvailabilityStatus",
    "CheckRecord",
    "CheckResult",
    "CheckTickResult",
    "CircuitBreaker",
    "CircuitOpenError",
    "CircuitState",
    "DeferredQueue",
    "DeliveryReceipt",
    "ErrorKind",
    "HealthAggregator",
    "HealthReport",
    "LockTimeoutError",
    "LogLifecycleManager",
    "MonitorError",
    "MonitoringState",
    "NetworkError",
    "NotifyError",
    "OperationTimeoutError",
    "Orchestrator",
    "OrchestratorConfig",
    "OverallHealth",
    "PersistenceError",
    "RetryExecutor",
    "RetryPolicy",
    "StateStore",
    "SummaryStats",
    "SummaryTickResult",
    "ValidationError",
]
