"""Built-in health probes for the monitor's own components."""

from __future__ import annotations

import asyncio
from pathlib import Path

import psutil

from ..check_log_store import BufferedCheckLog
from ..circuit_breaker import CircuitBreaker, CircuitState
from ..deferred_queue import DeferredQueue
from ..state_store import StateStore
from .health_types import ProbeFn, ProbeOutcome

DEFAULT_MAX_CONSECUTIVE_FAILURES = 10
DEFAULT_MIN_FREE_DISK_BYTES = 100 * 1024 * 1024
DEFAULT_MAX_RSS_BYTES = 512 * 1024 * 1024
DEFAULT_QUEUE_WARN_RATIO = 0.8

_MB = 1024 * 1024


def check_log_probe(check_log: BufferedCheckLog) -> ProbeFn:
    async def probe() -> ProbeOutcome:
        if check_log.healthy:
            return ProbeOutcome(True, "check log writable")
        return ProbeOutcome(
            False,
            f"check log failing, {check_log.pending} records buffered: {check_log.last_error}",
            {"pending": check_log.pending},
        )

    return probe


def disk_space_probe(path: Path, *, min_free_bytes: int = DEFAULT_MIN_FREE_DISK_BYTES) -> ProbeFn:
    async def probe() -> ProbeOutcome:
        target = Path(path)
        while not target.exists() and target != target.parent:
            target = target.parent
        usage = await asyncio.to_thread(psutil.disk_usage, str(target))
        healthy = usage.free >= min_free_bytes
        return ProbeOutcome(
            healthy,
            f"{usage.free / _MB:.0f}MB free on {target} ({usage.percent:.1f}% used)",
            {"free_bytes": usage.free, "percent_used": usage.percent},
        )

    return probe


def memory_probe(*, max_rss_bytes: int = DEFAULT_MAX_RSS_BYTES) -> ProbeFn:
    process = psutil.Process()

    async def probe() -> ProbeOutcome:
        rss = process.memory_info().rss
        return ProbeOutcome(rss <= max_rss_bytes, f"process RSS {rss / _MB:.1f}MB", {"rss_bytes": rss})

    return probe


def circuit_breaker_probe(breaker: CircuitBreaker) -> ProbeFn:
    async def probe() -> ProbeOutcome:
        status = breaker.get_status()
        detail = f"{status.name} {status.state.value} ({status.failure_count}/{status.threshold} failures)"
        return ProbeOutcome(status.state is not CircuitState.OPEN, detail, status.to_dict())

    return probe


def deferred_queue_probe(queue: DeferredQueue, *, warn_ratio: float = DEFAULT_QUEUE_WARN_RATIO) -> ProbeFn:
    async def probe() -> ProbeOutcome:
        size = len(queue)
        healthy = size < queue.max_capacity * warn_ratio
        return ProbeOutcome(healthy, f"{size}/{queue.max_capacity} queued", {"size": size})

    return probe


def application_state_probe(store: StateStore, *, max_consecutive_failures: int = DEFAULT_MAX_CONSECUTIVE_FAILURES) -> ProbeFn:
    async def probe() -> ProbeOutcome:
        state = store.read()
        healthy = state.consecutive_failures <= max_consecutive_failures
        detail = (
            f"{state.check_count} checks, {state.consecutive_failures} consecutive failures, "
            f"last status {state.last_observed_status.value}"
        )
        return ProbeOutcome(healthy, detail, {"consecutive_failures": state.consecutive_failures})

    return probe


__all__ = [
    "application_state_probe",
    "check_log_probe",
    "circuit_breaker_probe",
    "deferred_queue_probe",
    "disk_space_probe",
    "memory_probe",
]
