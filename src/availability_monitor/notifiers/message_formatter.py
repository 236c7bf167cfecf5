"""Text rendering for notifications."""

from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from ..capabilities import AlertContext, SummaryStats


def _format_timestamp(timestamp: float, tz: Optional[timezone] = None) -> str:
    return datetime.fromtimestamp(timestamp, tz=tz or timezone.utc).strftime("%Y-%m-%d %H:%M:%S %Z")


def format_alert(context: AlertContext, tz=None) -> str:
    lines = [
        f"🟢 {context.target_name} is AVAILABLE",
        f"Previously: {context.previous_status.value}",
        f"Observed: {_format_timestamp(context.observed_at, tz)}",
        context.target_url,
    ]
    if context.detail:
        lines.insert(3, f"Detail: {context.detail}")
    return "\n".join(lines)


def _format_error_counts(error_counts: Sequence[Tuple[str, int]]) -> str:
    return ", ".join(f"{kind}={count}" for kind, count in error_counts)


def format_summary(stats: SummaryStats, tz=None) -> str:
    lines = [
        f"📊 Daily summary for {stats.target_name}: {stats.date.isoformat()}",
        f"Checks: {stats.total_checks} ({stats.success_rate:.0%} completed)",
        f"Available: {stats.available_count}",
        f"Unavailable: {stats.unavailable_count}",
        f"Failed checks: {stats.failed_count}",
        f"Status changes: {stats.status_changes}",
        f"Last status: {stats.last_status.value}",
    ]
    if stats.error_counts:
        lines.append(f"Errors: {_format_error_counts(sorted(stats.error_counts.items()))}")
    if stats.total_checks == 0:
        lines.append("No checks were recorded in this period.")
    return "\n".join(lines)
