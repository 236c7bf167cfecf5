"""
Health aggregator - runs registered probes and reports one overall status.

Probes run concurrently, each bounded by its own timeout. A probe that raises
or times out is reported unhealthy with the captured error instead of failing
the whole report.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from ..errors import ValidationError
from .health_types import HealthReport, ProbeFn, ProbeOutcome, ProbeResult, ProbeStatus, RegisteredProbe
from .status_aggregator import aggregate_status

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT_SECONDS = 5.0


class HealthAggregator:
    """Single source of truth for monitor health."""

    def __init__(
        self,
        *,
        default_timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.default_timeout = default_timeout
        self._clock = clock
        self._probes: Dict[str, RegisteredProbe] = {}
        self._last_report: Optional[HealthReport] = None

    def register_check(self, name: str, probe: ProbeFn, *, core: bool = False, timeout: Optional[float] = None) -> None:
        """
        Register (or replace) a named probe.

        Args:
            name: Unique probe name
            probe: Zero-argument coroutine function
            core: Whether failure makes the monitor unhealthy rather than degraded
            timeout: Per-probe timeout overriding the run-wide one
        """
        if not name:
            raise ValidationError("Health check name must not be empty")
        if name in self._probes:
            logger.debug("Replacing health check %s", name)
        self._probes[name] = RegisteredProbe(name=name, probe=probe, core=core, timeout=timeout)

    def unregister_check(self, name: str) -> None:
        self._probes.pop(name, None)

    @property
    def check_names(self) -> list[str]:
        return list(self._probes)

    @property
    def last_report(self) -> Optional[HealthReport]:
        return self._last_report

    async def run_checks(self, per_probe_timeout: Optional[float] = None) -> HealthReport:
        """
        Run every registered probe concurrently.

        Args:
            per_probe_timeout: Timeout for probes that do not declare their own

        Returns:
            HealthReport with per-probe results and the aggregated status
        """
        probes = list(self._probes.values())
        run_timeout = per_probe_timeout if per_probe_timeout is not None else self.default_timeout

        results = await asyncio.gather(*(self._run_probe(probe, run_timeout) for probe in probes))
        report = HealthReport(
            overall=aggregate_status(results),
            probes={result.name: result for result in results},
            checked_at=self._clock(),
        )
        self._last_report = report

        if report.failing:
            logger.warning("Health %s; failing probes: %s", report.overall.value, ", ".join(report.failing))
        else:
            logger.debug("Health %s (%s probes)", report.overall.value, len(results))
        return report

    async def _run_probe(self, registered: RegisteredProbe, run_timeout: float) -> ProbeResult:
        timeout = registered.timeout if registered.timeout is not None else run_timeout
        started = time.perf_counter()
        try:
            outcome = await asyncio.wait_for(registered.probe(), timeout=timeout)
        except asyncio.TimeoutError:
            return self._failed(registered, started, f"timed out after {timeout:.1f}s")
        except Exception as exc:
            logger.error("Health check %s raised: %s", registered.name, exc)
            return self._failed(registered, started, f"{type(exc).__name__}: {exc}")

        duration_ms = (time.perf_counter() - started) * 1000
        normalized = _normalize_outcome(outcome)
        return ProbeResult(
            name=registered.name,
            status=ProbeStatus.HEALTHY if normalized.healthy else ProbeStatus.UNHEALTHY,
            core=registered.core,
            duration_ms=duration_ms,
            detail=normalized.detail,
            data=dict(normalized.data),
        )

    @staticmethod
    def _failed(registered: RegisteredProbe, started: float, error: str) -> ProbeResult:
        return ProbeResult(
            name=registered.name,
            status=ProbeStatus.UNHEALTHY,
            core=registered.core,
            duration_ms=(time.perf_counter() - started) * 1000,
            error=error,
        )


def _normalize_outcome(outcome: ProbeOutcome | bool | None) -> ProbeOutcome:
    if isinstance(outcome, ProbeOutcome):
        return outcome
    if outcome is None:
        return ProbeOutcome(healthy=True)
    return ProbeOutcome(healthy=bool(outcome))


__all__ = ["DEFAULT_PROBE_TIMEOUT_SECONDS", "HealthAggregator"]
