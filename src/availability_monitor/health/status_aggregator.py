"""Aggregate probe results into an overall status."""

from typing import Iterable

from .health_types import OverallHealth, ProbeResult


def aggregate_status(results: Iterable[ProbeResult]) -> OverallHealth:
    """
    Derive the overall status from probe results alone.

    Args:
        results: Probe results

    Returns:
        HEALTHY when every probe passed (or there are none), UNHEALTHY when any
        core probe failed, otherwise DEGRADED
    """
    degraded = False
    for result in results:
        if result.healthy:
            continue
        if result.core:
            return OverallHealth.UNHEALTHY
        degraded = True
    return OverallHealth.DEGRADED if degraded else OverallHealth.HEALTHY
