"""Health aggregation for the monitor and its collaborators."""

from .health_aggregator import DEFAULT_PROBE_TIMEOUT_SECONDS, HealthAggregator
from .health_types import (
    HealthReport,
    OverallHealth,
    ProbeFn,
    ProbeOutcome,
    ProbeResult,
    ProbeStatus,
)
from .status_aggregator import aggregate_status

__all__ = [
    "DEFAULT_PROBE_TIMEOUT_SECONDS",
    "HealthAggregator",
    "HealthReport",
    "OverallHealth",
    "ProbeFn",
    "ProbeOutcome",
    "ProbeResult",
    "ProbeStatus",
    "aggregate_status",
]
