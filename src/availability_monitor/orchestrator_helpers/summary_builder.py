"""Daily summary windows and statistics."""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, time as dt_time, timedelta, tzinfo
from typing import Iterable, Optional, Tuple

from ..capabilities import AvailabilityStatus, CheckRecord, SummaryStats


def day_window(day: date, tz: tzinfo) -> Tuple[float, float]:
    """Epoch bounds ``[start, end)`` of a calendar day in ``tz``."""
    start = datetime.combine(day, dt_time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), dt_time.min, tzinfo=tz)
    return start.timestamp(), end.timestamp()


def due_summary_date(now: float, tz: tzinfo, send_at: dt_time) -> Optional[date]:
    """
    The day whose summary should have been sent by ``now``.

    Returns:
        Yesterday (in ``tz``) once the local time reaches ``send_at``, else None
    """
    local_now = datetime.fromtimestamp(now, tz=tz)
    if local_now.time() < send_at:
        return None
    return local_now.date() - timedelta(days=1)


def build_summary_stats(records: Iterable[CheckRecord], day: date, tz: tzinfo, target_name: str) -> SummaryStats:
    """Aggregate the records that fall within ``day``."""
    window_start, window_end = day_window(day, tz)
    in_window = sorted(
        (record for record in records if window_start <= record.timestamp < window_end),
        key=lambda record: record.timestamp,
    )

    error_counts: Counter[str] = Counter()
    available = unavailable = failed = changes = 0
    last_status = AvailabilityStatus.UNKNOWN
    for record in in_window:
        if not record.success:
            failed += 1
            error_counts[record.error_kind or "unknown"] += 1
            continue
        if record.status is AvailabilityStatus.AVAILABLE:
            available += 1
        elif record.status is AvailabilityStatus.UNAVAILABLE:
            unavailable += 1
        if record.status_changed:
            changes += 1
        last_status = record.status

    return SummaryStats(
        date=day,
        target_name=target_name,
        window_start=window_start,
        window_end=window_end,
        total_checks=len(in_window),
        available_count=available,
        unavailable_count=unavailable,
        failed_count=failed,
        status_changes=changes,
        last_status=last_status,
        error_counts=dict(error_counts),
    )
